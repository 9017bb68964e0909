"""
Feature extraction endpoint.
"""

from __future__ import annotations

import time

from fastapi import APIRouter

from robust_matcher.config import get_settings
from robust_matcher.logging import get_logger
from robust_matcher.schemas import (
    DescriptorData,
    ExtractRequest,
    ExtractResponse,
    ImageSize,
    KeypointData,
)
from robust_matcher.services.feature_extractor import create_feature_source
from robust_matcher.utils.image import decode_base64_image, decode_image, encode_descriptors

router = APIRouter()


@router.post("/extract", response_model=ExtractResponse)
async def extract_features(request: ExtractRequest) -> ExtractResponse:
    """Detect keypoints and compute descriptors for one image."""
    logger = get_logger()
    start_time = time.perf_counter()

    settings = get_settings()

    image = decode_image(decode_base64_image(request.image))
    height, width = image.shape[:2]

    feature_source = create_feature_source(settings)
    keypoints = feature_source.detect(image)
    keypoints, descriptors = feature_source.extract(image, keypoints)

    data, dtype, shape = encode_descriptors(descriptors)

    processing_time_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "Features extracted",
        extra={
            "image_id": request.image_id,
            "num_features": len(keypoints),
            "processing_time_ms": round(processing_time_ms, 2),
        },
    )

    return ExtractResponse(
        image_id=request.image_id,
        num_features=len(keypoints),
        keypoints=[KeypointData(x=kp.x, y=kp.y, size=kp.size, angle=kp.angle) for kp in keypoints],
        descriptors=DescriptorData(data=data, dtype=dtype, shape=shape),
        image_size=ImageSize(width=width, height=height),
        processing_time_ms=round(processing_time_ms, 2),
    )
