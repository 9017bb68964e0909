"""
Fundamental matrix estimators wrapping cv2.findFundamentalMat.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from robust_matcher.core.exceptions import DegenerateConfigurationError, UnderdeterminedGeometryError
from robust_matcher.models import MIN_CORRESPONDENCES

if TYPE_CHECKING:
    from numpy.typing import NDArray


def _check_count(points1: NDArray, points2: NDArray, stage: str) -> None:
    if len(points1) != len(points2):
        raise ValueError(f"Point arrays differ in length: {len(points1)} != {len(points2)}")
    if len(points1) < MIN_CORRESPONDENCES:
        raise UnderdeterminedGeometryError(
            stage=stage,
            correspondences=len(points1),
            minimum_required=MIN_CORRESPONDENCES,
        )


def _check_matrix(fundamental: NDArray | None, stage: str, estimator: str) -> NDArray[np.float64]:
    if fundamental is None or fundamental.size == 0:
        raise DegenerateConfigurationError(stage, estimator, "no solution returned")
    if fundamental.shape != (3, 3):
        raise DegenerateConfigurationError(
            stage, estimator, f"expected a single 3x3 solution, got shape {fundamental.shape}"
        )
    if not np.all(np.isfinite(fundamental)):
        raise DegenerateConfigurationError(stage, estimator, "solution has non-finite entries")
    return np.asarray(fundamental, dtype=np.float64)


class RANSACFundamentalEstimator:
    """
    Robust estimation with OpenCV USAC (RANSAC over 8-point minimal sets).

    The distance tolerance applies at every point count from 8 up.
    """

    name = "RANSAC"

    def __init__(self, max_iters: int) -> None:
        """
        Args:
            max_iters: Upper bound on RANSAC iterations
        """
        self.max_iters = max_iters

    def estimate(
        self,
        points1: NDArray[np.float32],
        points2: NDArray[np.float32],
        tolerance: float,
        confidence: float,
    ) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
        """
        Estimate F and classify every correspondence.

        Args:
            points1: (N, 2) points in image 1
            points2: (N, 2) points in image 2
            tolerance: Maximum distance to the epipolar line for an inlier
            confidence: Desired probability that the result is outlier free

        Returns:
            Tuple of (F 3x3, inlier mask of shape (N,))

        Raises:
            UnderdeterminedGeometryError: Fewer than 8 correspondences
            DegenerateConfigurationError: OpenCV could not produce a solution
        """
        _check_count(points1, points2, "ransac")
        try:
            fundamental, mask = cv2.findFundamentalMat(
                points1,
                points2,
                cv2.USAC_FM_8PTS,
                ransacReprojThreshold=tolerance,
                confidence=confidence,
                maxIters=self.max_iters,
            )
        except cv2.error as e:
            raise DegenerateConfigurationError("ransac", self.name, str(e).strip()) from e

        fundamental = _check_matrix(fundamental, "ransac", self.name)
        if mask is None:
            raise DegenerateConfigurationError("ransac", self.name, "no inlier mask returned")

        return fundamental, mask.ravel().astype(bool)


class EightPointFundamentalEstimator:
    """Non-robust 8-point estimation over every given correspondence."""

    name = "8POINT"

    def estimate(
        self,
        points1: NDArray[np.float32],
        points2: NDArray[np.float32],
    ) -> NDArray[np.float64]:
        """
        Raises:
            UnderdeterminedGeometryError: Fewer than 8 correspondences
            DegenerateConfigurationError: OpenCV could not produce a solution
        """
        _check_count(points1, points2, "refinement")
        try:
            fundamental, _ = cv2.findFundamentalMat(points1, points2, cv2.FM_8POINT)
        except cv2.error as e:
            raise DegenerateConfigurationError("refinement", self.name, str(e).strip()) from e

        return _check_matrix(fundamental, "refinement", self.name)
