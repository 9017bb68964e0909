"""
Interfaces of the collaborators injected into the matching pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from robust_matcher.models import DirectedMatch, Keypoint


class FeatureSource(Protocol):
    """Detects keypoints and computes one descriptor per keypoint."""

    name: str

    def detect(self, image: NDArray[np.uint8]) -> list[Keypoint]: ...

    def extract(
        self, image: NDArray[np.uint8], keypoints: list[Keypoint]
    ) -> tuple[list[Keypoint], NDArray | None]: ...


class NeighborSearch(Protocol):
    """Finds the k nearest descriptors of B for every descriptor of A."""

    norm_name: str

    def knn(self, desc_a: NDArray | None, desc_b: NDArray | None, k: int = 2) -> list[DirectedMatch]: ...


class RobustEstimator(Protocol):
    """Outlier-tolerant fundamental matrix estimation."""

    name: str

    def estimate(
        self,
        points1: NDArray[np.float32],
        points2: NDArray[np.float32],
        tolerance: float,
        confidence: float,
    ) -> tuple[NDArray[np.float64], NDArray[np.bool_]]: ...


class ExactEstimator(Protocol):
    """Least-squares fundamental matrix over all given correspondences."""

    name: str

    def estimate(
        self,
        points1: NDArray[np.float32],
        points2: NDArray[np.float32],
    ) -> NDArray[np.float64]: ...
