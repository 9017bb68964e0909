"""
Pydantic request/response models for the robust matcher API.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# === Helper Models ===


class KeypointData(BaseModel):
    """Keypoint data for feature extraction."""

    model_config = ConfigDict(extra="forbid")

    x: float
    """X coordinate of the keypoint."""

    y: float
    """Y coordinate of the keypoint."""

    size: float
    """Size of the keypoint neighborhood."""

    angle: float
    """Orientation of the keypoint in degrees."""


class ImageSize(BaseModel):
    """Image dimensions."""

    model_config = ConfigDict(extra="forbid")

    width: int
    height: int


class DescriptorData(BaseModel):
    """Descriptor matrix packed for transport."""

    data: str
    """Base64-encoded raw descriptor bytes (row-major)."""

    dtype: str
    """Numpy dtype name, e.g. uint8 (ORB) or float32 (SIFT)."""

    shape: list[int]
    """Matrix shape as [rows, columns]."""


class MatchData(BaseModel):
    """One verified correspondence."""

    query_idx: int
    """Keypoint index in image1."""

    train_idx: int
    """Keypoint index in image2."""

    distance: float
    """Descriptor distance of the image1 -> image2 best neighbour."""


class PipelineStatsData(BaseModel):
    """Per-stage yield counters."""

    keypoints1: int
    keypoints2: int
    raw_matches12: int
    raw_matches21: int
    ratio_removed12: int
    ratio_removed21: int
    symmetric_matches: int
    inliers: int


# === Request Models ===


class ExtractRequest(BaseModel):
    """Request model for POST /extract endpoint."""

    model_config = ConfigDict(extra="forbid")

    image: str = Field(..., min_length=1)
    """Base64-encoded image data (JPEG, PNG, or WebP)."""

    image_id: str | None = None
    """Optional identifier for logging/tracing."""


class MatchRequest(BaseModel):
    """Request model for POST /match endpoint."""

    model_config = ConfigDict(extra="forbid")

    image1: str = Field(..., min_length=1)
    """Base64-encoded first view."""

    image2: str = Field(..., min_length=1)
    """Base64-encoded second view."""

    pair_id: str | None = None
    """Optional identifier for logging/tracing."""


# === Response Models ===


class HealthResponse(BaseModel):
    """Response model for GET /health endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"]
    uptime_seconds: float
    uptime: str
    """Human-readable uptime (e.g., "2d 3h 15m 42s")."""

    system_time: str
    """Current system time in yyyy-mm-dd hh:mm format (UTC)."""

    pipeline_runs: int
    pipeline_failures: int


class AlgorithmInfo(BaseModel):
    """Algorithm configuration for /info endpoint."""

    feature_detector: str
    max_features: int
    matcher: str
    matcher_norm: str
    ratio_threshold: float
    symmetry_test: bool
    verification: str
    epipolar_distance: float
    ransac_confidence: float
    refine_fundamental: bool


class InfoResponse(BaseModel):
    """Response model for GET /info endpoint."""

    service: str
    version: str
    algorithm: AlgorithmInfo


class ExtractResponse(BaseModel):
    """Response model for POST /extract endpoint."""

    image_id: str | None
    num_features: int
    keypoints: list[KeypointData]
    descriptors: DescriptorData
    image_size: ImageSize
    processing_time_ms: float


class MatchResponse(BaseModel):
    """Response model for POST /match endpoint."""

    pair_id: str | None = None
    num_matches: int
    """Number of matches surviving all tests."""

    matches: list[MatchData]
    fundamental_matrix: list[list[float]]
    """3x3 fundamental matrix F with p2^T F p1 = 0."""

    stats: PipelineStatsData
    stage_timings_ms: dict[str, float]
    processing_time_ms: float


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    """Machine-readable error code."""

    message: str
    details: dict[str, Any]
