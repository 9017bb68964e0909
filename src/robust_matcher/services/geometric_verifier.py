"""
Epipolar geometric verification with RANSAC and optional refinement.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from robust_matcher.core.exceptions import UnderdeterminedGeometryError
from robust_matcher.logging import get_logger
from robust_matcher.models import MIN_CORRESPONDENCES, VerificationResult, correspondences

if TYPE_CHECKING:
    from collections.abc import Sequence

    from robust_matcher.models import Keypoint, Match
    from robust_matcher.services.interfaces import ExactEstimator, RobustEstimator

logger = get_logger(__name__)


class FundamentalVerifier:
    """Verify matches against a robustly estimated fundamental matrix."""

    def __init__(
        self,
        robust_estimator: RobustEstimator,
        exact_estimator: ExactEstimator,
    ) -> None:
        """
        Initialize verifier.

        Args:
            robust_estimator: Returns F plus an inlier mask (e.g. RANSAC)
            exact_estimator: Fits F to all given points (e.g. 8-point)
        """
        self.robust_estimator = robust_estimator
        self.exact_estimator = exact_estimator

    def verify(
        self,
        matches: Sequence[Match],
        keypoints1: Sequence[Keypoint],
        keypoints2: Sequence[Keypoint],
        distance: float,
        confidence: float,
        refine: bool,
    ) -> VerificationResult:
        """
        Keep the matches consistent with a single epipolar geometry.

        Args:
            matches: Candidate matches (e.g. from the symmetry test)
            keypoints1: Keypoints of image 1
            keypoints2: Keypoints of image 2
            distance: Maximum distance to the epipolar line for an inlier
            confidence: RANSAC confidence level
            refine: Re-estimate F from all inliers with the exact estimator

        Returns:
            VerificationResult with inliers in input order

        Raises:
            UnderdeterminedGeometryError: Fewer than 8 matches, or fewer than
                8 inliers when refining
            DegenerateConfigurationError: Propagated from the estimators
        """
        total_matches = len(matches)
        if total_matches < MIN_CORRESPONDENCES:
            raise UnderdeterminedGeometryError(
                stage="ransac",
                correspondences=total_matches,
                minimum_required=MIN_CORRESPONDENCES,
            )

        points1, points2 = correspondences(matches, keypoints1, keypoints2)
        fundamental, mask = self.robust_estimator.estimate(points1, points2, distance, confidence)

        inliers = [match for match, keep in zip(matches, mask, strict=True) if keep]

        logger.debug(
            "RANSAC finished",
            extra={
                "estimator": self.robust_estimator.name,
                "total_matches": total_matches,
                "inliers": len(inliers),
            },
        )

        if refine:
            if len(inliers) < MIN_CORRESPONDENCES:
                raise UnderdeterminedGeometryError(
                    stage="refinement",
                    correspondences=len(inliers),
                    minimum_required=MIN_CORRESPONDENCES,
                )
            # Fresh arrays built from the inliers only
            points1, points2 = correspondences(inliers, keypoints1, keypoints2)
            fundamental = self.exact_estimator.estimate(points1, points2)

        return VerificationResult(
            fundamental=fundamental,
            inliers=inliers,
            total_matches=total_matches,
            refined=refine,
        )
