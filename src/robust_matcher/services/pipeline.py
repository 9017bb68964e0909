"""
Robust two-view matching pipeline.

Stages, run strictly in order for each image pair:

1. Keypoint detection and descriptor extraction (both images)
2. kNN search with k=2 in both directions
3. Ratio test on each direction
4. Symmetry test across directions
5. RANSAC fundamental matrix estimation, optionally refined by the
   8-point method over all inliers
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from robust_matcher.logging import get_logger
from robust_matcher.models import MatchResult, PipelineStats
from robust_matcher.services.estimators import EightPointFundamentalEstimator, RANSACFundamentalEstimator
from robust_matcher.services.feature_extractor import create_feature_source
from robust_matcher.services.geometric_verifier import FundamentalVerifier
from robust_matcher.services.neighbor_search import BFNeighborSearch
from robust_matcher.services.ratio_test import ratio_test
from robust_matcher.services.symmetry_test import symmetry_test
from robust_matcher.utils.timing import StageTimer

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from robust_matcher.config import Settings
    from robust_matcher.models import DirectedMatch, Keypoint
    from robust_matcher.services.interfaces import (
        ExactEstimator,
        FeatureSource,
        NeighborSearch,
        RobustEstimator,
    )

logger = get_logger(__name__)


@dataclass(frozen=True)
class MatcherParams:
    """Parameters shared by every stage of one run."""

    ratio: float = 0.65
    refine_fundamental: bool = True
    distance: float = 3.0
    confidence: float = 0.99

    def __post_init__(self) -> None:
        if not 0.0 < self.ratio <= 1.0:
            raise ValueError(f"ratio must be in (0, 1], got {self.ratio}")
        if self.distance <= 0.0:
            raise ValueError(f"distance must be positive, got {self.distance}")
        if not 0.0 < self.confidence < 1.0:
            raise ValueError(f"confidence must be in (0, 1), got {self.confidence}")


class RobustMatcher:
    """Match two images with ratio, symmetry and epipolar tests."""

    def __init__(
        self,
        feature_source: FeatureSource,
        neighbor_search: NeighborSearch,
        robust_estimator: RobustEstimator,
        exact_estimator: ExactEstimator,
        params: MatcherParams | None = None,
    ) -> None:
        self.feature_source = feature_source
        self.neighbor_search = neighbor_search
        self.verifier = FundamentalVerifier(robust_estimator, exact_estimator)
        self.params = params if params is not None else MatcherParams()

    @classmethod
    def from_settings(cls, settings: Settings) -> RobustMatcher:
        """Build a matcher from loaded configuration."""
        return cls(
            feature_source=create_feature_source(settings),
            neighbor_search=BFNeighborSearch(),
            robust_estimator=RANSACFundamentalEstimator(max_iters=settings.ransac.max_iters),
            exact_estimator=EightPointFundamentalEstimator(),
            params=MatcherParams(
                ratio=settings.matching.ratio_threshold,
                refine_fundamental=settings.ransac.refine_fundamental,
                distance=settings.ransac.distance,
                confidence=settings.ransac.confidence,
            ),
        )

    # === Configuration ===

    def set_feature_source(self, feature_source: FeatureSource) -> None:
        self.feature_source = feature_source

    def set_neighbor_search(self, neighbor_search: NeighborSearch) -> None:
        self.neighbor_search = neighbor_search

    def set_ratio(self, ratio: float) -> None:
        """Set the maximum best/second-best distance ratio."""
        self.params = replace(self.params, ratio=ratio)

    def set_min_distance_to_epipolar(self, distance: float) -> None:
        """Set the RANSAC inlier distance to the epipolar line."""
        self.params = replace(self.params, distance=distance)

    def set_confidence_level(self, confidence: float) -> None:
        """Set the RANSAC confidence level."""
        self.params = replace(self.params, confidence=confidence)

    def refine_fundamental(self, flag: bool) -> None:
        """Enable or disable 8-point re-estimation over the inliers."""
        self.params = replace(self.params, refine_fundamental=flag)

    # === Pipeline ===

    def match(self, image1: NDArray[np.uint8], image2: NDArray[np.uint8]) -> MatchResult:
        """
        Run the full pipeline on two decoded images.

        Returns:
            MatchResult with the inlier matches and fundamental matrix

        Raises:
            UnderdeterminedGeometryError: Too few correspondences survived
            DegenerateConfigurationError: Estimation failed on the points
        """
        timer = StageTimer()

        with timer.stage("detection"):
            keypoints1 = self.feature_source.detect(image1)
            keypoints2 = self.feature_source.detect(image2)

        with timer.stage("extraction"):
            keypoints1, descriptors1 = self.feature_source.extract(image1, keypoints1)
            keypoints2, descriptors2 = self.feature_source.extract(image2, keypoints2)

        return self._match_features(keypoints1, descriptors1, keypoints2, descriptors2, timer)

    def match_features(
        self,
        keypoints1: list[Keypoint],
        descriptors1: NDArray | None,
        keypoints2: list[Keypoint],
        descriptors2: NDArray | None,
    ) -> MatchResult:
        """Run the pipeline from precomputed keypoints and descriptors."""
        return self._match_features(keypoints1, descriptors1, keypoints2, descriptors2, StageTimer())

    def match_candidates(
        self,
        keypoints1: list[Keypoint],
        keypoints2: list[Keypoint],
        matches12: list[DirectedMatch],
        matches21: list[DirectedMatch],
    ) -> MatchResult:
        """
        Run the filtering stages on precomputed kNN matches.

        ``matches12`` and ``matches21`` are thinned in place by the ratio test.
        """
        return self._filter_and_verify(keypoints1, keypoints2, matches12, matches21, StageTimer())

    def _match_features(
        self,
        keypoints1: list[Keypoint],
        descriptors1: NDArray | None,
        keypoints2: list[Keypoint],
        descriptors2: NDArray | None,
        timer: StageTimer,
    ) -> MatchResult:
        with timer.stage("neighbor_search"):
            matches12 = self.neighbor_search.knn(descriptors1, descriptors2, k=2)
            matches21 = self.neighbor_search.knn(descriptors2, descriptors1, k=2)

        return self._filter_and_verify(keypoints1, keypoints2, matches12, matches21, timer)

    def _filter_and_verify(
        self,
        keypoints1: list[Keypoint],
        keypoints2: list[Keypoint],
        matches12: list[DirectedMatch],
        matches21: list[DirectedMatch],
        timer: StageTimer,
    ) -> MatchResult:
        # One snapshot per run; setters only affect later runs
        params = self.params

        stats = PipelineStats(
            keypoints1=len(keypoints1),
            keypoints2=len(keypoints2),
            raw_matches12=len(matches12),
            raw_matches21=len(matches21),
        )

        with timer.stage("ratio_test"):
            stats.ratio_removed12 = ratio_test(matches12, params.ratio)
            stats.ratio_removed21 = ratio_test(matches21, params.ratio)

        logger.debug(
            "Ratio test done",
            extra={
                "ratio": params.ratio,
                "kept12": stats.raw_matches12 - stats.ratio_removed12,
                "kept21": stats.raw_matches21 - stats.ratio_removed21,
            },
        )

        with timer.stage("symmetry_test"):
            sym_matches = symmetry_test(matches12, matches21)
        stats.symmetric_matches = len(sym_matches)

        logger.debug("Symmetry test done", extra={"symmetric_matches": stats.symmetric_matches})

        with timer.stage("geometric_verification"):
            verification = self.verifier.verify(
                sym_matches,
                keypoints1,
                keypoints2,
                distance=params.distance,
                confidence=params.confidence,
                refine=params.refine_fundamental,
            )
        stats.inliers = verification.inlier_count

        logger.info(
            "Pipeline completed",
            extra={
                "keypoints1": stats.keypoints1,
                "keypoints2": stats.keypoints2,
                "symmetric_matches": stats.symmetric_matches,
                "inliers": stats.inliers,
                "refined": verification.refined,
                "total_ms": timer.total_ms,
            },
        )

        return MatchResult(
            matches=verification.inliers,
            fundamental=verification.fundamental,
            keypoints1=list(keypoints1),
            keypoints2=list(keypoints2),
            stats=stats,
            timings_ms=dict(timer.timings_ms),
        )
