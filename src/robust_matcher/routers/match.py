"""
Two-view matching endpoint.
"""

from __future__ import annotations

import time
from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter

from robust_matcher.config import get_settings
from robust_matcher.core.state import get_app_state
from robust_matcher.logging import get_logger
from robust_matcher.schemas import MatchData, MatchRequest, MatchResponse, PipelineStatsData
from robust_matcher.services.pipeline import RobustMatcher
from robust_matcher.utils.image import decode_base64_image, decode_image

if TYPE_CHECKING:
    from robust_matcher.config import Settings

router = APIRouter()


def build_matcher(settings: Settings) -> RobustMatcher:
    """Create a matcher for one request."""
    return RobustMatcher.from_settings(settings)


@router.post("/match", response_model=MatchResponse)
async def match_images(request: MatchRequest) -> MatchResponse:
    """Match two views and recover their fundamental matrix."""
    logger = get_logger()
    start_time = time.perf_counter()

    settings = get_settings()

    image1 = decode_image(decode_base64_image(request.image1))
    image2 = decode_image(decode_base64_image(request.image2))

    matcher = build_matcher(settings)
    state = get_app_state()
    succeeded = False
    try:
        result = matcher.match(image1, image2)
        succeeded = True
    finally:
        state.record_run(succeeded=succeeded)

    processing_time_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "Match completed",
        extra={
            "pair_id": request.pair_id,
            "symmetric_matches": result.stats.symmetric_matches,
            "inliers": result.stats.inliers,
            "processing_time_ms": round(processing_time_ms, 2),
        },
    )

    return MatchResponse(
        pair_id=request.pair_id,
        num_matches=len(result.matches),
        matches=[
            MatchData(query_idx=m.query_idx, train_idx=m.train_idx, distance=m.distance)
            for m in result.matches
        ],
        fundamental_matrix=result.fundamental.tolist(),
        stats=PipelineStatsData(**asdict(result.stats)),
        stage_timings_ms=result.timings_ms,
        processing_time_ms=round(processing_time_ms, 2),
    )
