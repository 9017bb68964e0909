"""
Service information endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter

from robust_matcher.config import get_settings
from robust_matcher.schemas import AlgorithmInfo, InfoResponse

router = APIRouter()

_NORM_BY_DETECTOR = {"orb": "HAMMING", "sift": "L2"}


@router.get("/info", response_model=InfoResponse)
async def get_info() -> InfoResponse:
    """Get service information and configuration."""
    settings = get_settings()
    detector = settings.features.detector

    algorithm = AlgorithmInfo(
        feature_detector=detector.upper(),
        max_features=settings.features.max_features,
        matcher="BFMatcher",
        matcher_norm=_NORM_BY_DETECTOR[detector],
        ratio_threshold=settings.matching.ratio_threshold,
        symmetry_test=True,
        verification="RANSAC fundamental matrix",
        epipolar_distance=settings.ransac.distance,
        ransac_confidence=settings.ransac.confidence,
        refine_fundamental=settings.ransac.refine_fundamental,
    )

    return InfoResponse(
        service=settings.service.name,
        version=settings.service.version,
        algorithm=algorithm,
    )
