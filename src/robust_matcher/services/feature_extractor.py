"""
Keypoint detection and descriptor extraction backed by OpenCV.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from robust_matcher.models import Keypoint

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from robust_matcher.config import Settings
    from robust_matcher.services.interfaces import FeatureSource


def to_grayscale(image: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Convert a BGR image to grayscale; grayscale input passes through."""
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


class _OpenCVFeatureSource:
    """Shared detect/extract logic for OpenCV Feature2D objects."""

    name = "opencv"

    def __init__(self, feature2d: cv2.Feature2D) -> None:
        self.feature2d = feature2d

    def detect(self, image: NDArray[np.uint8]) -> list[Keypoint]:
        """
        Detect keypoints in an image.

        Args:
            image: Grayscale or BGR image

        Returns:
            Detected keypoints
        """
        cv_keypoints = self.feature2d.detect(to_grayscale(image), None)
        return [Keypoint.from_cv(kp) for kp in cv_keypoints]

    def extract(
        self,
        image: NDArray[np.uint8],
        keypoints: list[Keypoint],
    ) -> tuple[list[Keypoint], NDArray | None]:
        """
        Compute descriptors for the given keypoints.

        The descriptor computer may drop keypoints it cannot describe
        (e.g. too close to the border), so the surviving keypoints are
        returned alongside the descriptors, row-aligned.

        Returns:
            Tuple of (keypoints, descriptors or None if nothing survived)
        """
        if not keypoints:
            return [], None
        cv_keypoints = [kp.to_cv() for kp in keypoints]
        cv_keypoints, descriptors = self.feature2d.compute(to_grayscale(image), cv_keypoints)
        if descriptors is None or len(cv_keypoints) == 0:
            return [], None
        return [Keypoint.from_cv(kp) for kp in cv_keypoints], descriptors


class ORBFeatureExtractor(_OpenCVFeatureSource):
    """ORB keypoints with 32-byte binary descriptors."""

    name = "ORB"

    def __init__(
        self,
        max_features: int,
        scale_factor: float,
        n_levels: int,
        edge_threshold: int,
        patch_size: int,
        fast_threshold: int,
    ) -> None:
        """
        Initialize ORB feature extractor.

        Args:
            max_features: Maximum number of features to retain
            scale_factor: Pyramid decimation ratio (> 1.0)
            n_levels: Number of pyramid levels
            edge_threshold: Border pixels excluded from detection
            patch_size: Size of patch used for descriptor
            fast_threshold: FAST corner detection threshold
        """
        super().__init__(
            cv2.ORB_create(
                nfeatures=max_features,
                scaleFactor=scale_factor,
                nlevels=n_levels,
                edgeThreshold=edge_threshold,
                patchSize=patch_size,
                fastThreshold=fast_threshold,
            )
        )


class SIFTFeatureExtractor(_OpenCVFeatureSource):
    """SIFT keypoints with 128-float descriptors."""

    name = "SIFT"

    def __init__(self, max_features: int) -> None:
        super().__init__(cv2.SIFT_create(nfeatures=max_features))


def create_feature_source(settings: Settings) -> FeatureSource:
    """Build the feature source selected in configuration."""
    if settings.features.detector == "sift":
        return SIFTFeatureExtractor(max_features=settings.features.max_features)
    return ORBFeatureExtractor(
        max_features=settings.features.max_features,
        scale_factor=settings.orb.scale_factor,
        n_levels=settings.orb.n_levels,
        edge_threshold=settings.orb.edge_threshold,
        patch_size=settings.orb.patch_size,
        fast_threshold=settings.orb.fast_threshold,
    )
