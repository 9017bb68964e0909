"""Unit tests for the RobustMatcher pipeline orchestrator."""

from __future__ import annotations

from unittest.mock import MagicMock

import numpy as np
import pytest

from robust_matcher.core.exceptions import DegenerateConfigurationError, UnderdeterminedGeometryError
from robust_matcher.models import Keypoint, Match
from robust_matcher.services.estimators import EightPointFundamentalEstimator, RANSACFundamentalEstimator
from robust_matcher.services.neighbor_search import BFNeighborSearch
from robust_matcher.services.pipeline import MatcherParams, RobustMatcher
from tests.factories import create_two_view_scene, directed, mutual_knn


def fake_robust(n_inliers: int | None = None) -> MagicMock:
    """Robust estimator accepting the first n_inliers correspondences."""
    robust = MagicMock()
    robust.name = "fake-robust"

    def estimate(points1, points2, tolerance, confidence):  # noqa: ANN001, ANN202
        n = len(points1) if n_inliers is None else n_inliers
        mask = np.zeros(len(points1), dtype=bool)
        mask[:n] = True
        return np.ones((3, 3)), mask

    robust.estimate.side_effect = estimate
    return robust


def fake_exact() -> MagicMock:
    exact = MagicMock()
    exact.name = "fake-exact"
    exact.estimate.return_value = np.eye(3)
    return exact


def build_matcher(
    robust: MagicMock | None = None,
    exact: MagicMock | None = None,
    params: MatcherParams | None = None,
) -> RobustMatcher:
    return RobustMatcher(
        feature_source=MagicMock(),
        neighbor_search=MagicMock(),
        robust_estimator=robust or fake_robust(),
        exact_estimator=exact or fake_exact(),
        params=params,
    )


def grid_keypoints(n: int) -> list[Keypoint]:
    return [Keypoint(x=float(i % 5) * 10.0, y=float(i // 5) * 10.0) for i in range(n)]


@pytest.mark.unit
class TestMatcherParams:
    """Tests for MatcherParams."""

    def test_defaults(self) -> None:
        params = MatcherParams()

        assert params.ratio == 0.65
        assert params.refine_fundamental is True
        assert params.distance == 3.0
        assert params.confidence == 0.99

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"ratio": 0.0},
            {"ratio": 1.5},
            {"distance": 0.0},
            {"confidence": 1.0},
            {"confidence": 0.0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            MatcherParams(**kwargs)


@pytest.mark.unit
class TestRobustMatcherSetters:
    """Tests for configuration setters."""

    def test_setters_update_params(self) -> None:
        matcher = build_matcher()

        matcher.set_ratio(0.8)
        matcher.set_min_distance_to_epipolar(1.0)
        matcher.set_confidence_level(0.95)
        matcher.refine_fundamental(False)

        assert matcher.params == MatcherParams(
            ratio=0.8, refine_fundamental=False, distance=1.0, confidence=0.95
        )

    def test_invalid_setter_value_keeps_previous(self) -> None:
        matcher = build_matcher()

        with pytest.raises(ValueError):
            matcher.set_ratio(2.0)

        assert matcher.params.ratio == 0.65

    def test_swap_collaborators(self) -> None:
        matcher = build_matcher()
        source, search = MagicMock(), MagicMock()

        matcher.set_feature_source(source)
        matcher.set_neighbor_search(search)

        assert matcher.feature_source is source
        assert matcher.neighbor_search is search


@pytest.mark.unit
class TestMatchCandidates:
    """Tests for the filtering and verification stages."""

    def test_two_point_scenario_stops_at_geometry(self) -> None:
        """Both entries pass ratio and symmetry, but two matches cannot determine F."""
        robust = fake_robust()
        matcher = build_matcher(robust=robust)
        keypoints = grid_keypoints(2)
        matches12 = [directed(0, (0, 1.0), (1, 5.0)), directed(1, (1, 1.0), (0, 5.0))]
        matches21 = [directed(0, (0, 1.0), (1, 5.0)), directed(1, (1, 1.0), (0, 5.0))]

        with pytest.raises(UnderdeterminedGeometryError) as exc_info:
            matcher.match_candidates(keypoints, keypoints, matches12, matches21)

        assert exc_info.value.details["correspondences"] == 2
        assert all(m.valid for m in matches12 + matches21)
        robust.estimate.assert_not_called()

    def test_seven_symmetric_matches_raise(self) -> None:
        robust = fake_robust()
        matcher = build_matcher(robust=robust)
        keypoints = grid_keypoints(7)
        matches12, matches21 = mutual_knn(7)

        with pytest.raises(UnderdeterminedGeometryError) as exc_info:
            matcher.match_candidates(keypoints, keypoints, matches12, matches21)

        assert exc_info.value.details["stage"] == "ransac"
        robust.estimate.assert_not_called()

    def test_full_run_reports_stats(self) -> None:
        matcher = build_matcher(robust=fake_robust(n_inliers=10))
        keypoints = grid_keypoints(15)
        matches12, matches21 = mutual_knn(15)
        # One ambiguous and one single-candidate entry in the forward list
        matches12[13] = directed(13, (13, 4.0), (0, 5.0))
        matches12[14] = directed(14, (14, 1.0))

        result = matcher.match_candidates(keypoints, keypoints, matches12, matches21)

        assert result.stats.raw_matches12 == 15
        assert result.stats.ratio_removed12 == 2
        assert result.stats.ratio_removed21 == 0
        assert result.stats.symmetric_matches == 13
        assert result.stats.inliers == 10
        assert result.matches == [Match(i, i, 1.0) for i in range(10)]
        np.testing.assert_array_equal(result.fundamental, np.eye(3))

    def test_timings_cover_filter_stages(self) -> None:
        matcher = build_matcher()
        keypoints = grid_keypoints(10)
        matches12, matches21 = mutual_knn(10)

        result = matcher.match_candidates(keypoints, keypoints, matches12, matches21)

        assert set(result.timings_ms) == {"ratio_test", "symmetry_test", "geometric_verification"}

    def test_refine_disabled_skips_exact_estimator(self) -> None:
        exact = fake_exact()
        matcher = build_matcher(exact=exact, params=MatcherParams(refine_fundamental=False))
        keypoints = grid_keypoints(10)
        matches12, matches21 = mutual_knn(10)

        result = matcher.match_candidates(keypoints, keypoints, matches12, matches21)

        exact.estimate.assert_not_called()
        np.testing.assert_array_equal(result.fundamental, np.ones((3, 3)))

    def test_params_fixed_for_the_run(self) -> None:
        """Changing settings during a run does not affect that run's refinement."""
        exact = fake_exact()
        robust = fake_robust()
        matcher = build_matcher(robust=robust, exact=exact)
        original = robust.estimate.side_effect

        def estimate_and_reconfigure(*args):  # noqa: ANN002, ANN202
            matcher.refine_fundamental(False)
            matcher.set_min_distance_to_epipolar(50.0)
            matcher.set_confidence_level(0.5)
            return original(*args)

        robust.estimate.side_effect = estimate_and_reconfigure
        keypoints = grid_keypoints(10)
        matches12, matches21 = mutual_knn(10)

        matcher.match_candidates(keypoints, keypoints, matches12, matches21)

        exact.estimate.assert_called_once()
        assert robust.estimate.call_args.args[2:] == (3.0, 0.99)
        assert matcher.params.refine_fundamental is False

    def test_ratio_applies_to_both_directions(self) -> None:
        matcher = build_matcher(params=MatcherParams(ratio=0.05))
        keypoints = grid_keypoints(10)
        matches12, matches21 = mutual_knn(10)

        with pytest.raises(UnderdeterminedGeometryError):
            matcher.match_candidates(keypoints, keypoints, matches12, matches21)

        assert not any(m.valid for m in matches12)
        assert not any(m.valid for m in matches21)

    def test_estimator_errors_are_not_suppressed(self) -> None:
        robust = fake_robust()
        robust.estimate.side_effect = DegenerateConfigurationError("ransac", "fake-robust", "collinear")
        matcher = build_matcher(robust=robust)
        keypoints = grid_keypoints(10)
        matches12, matches21 = mutual_knn(10)

        with pytest.raises(DegenerateConfigurationError):
            matcher.match_candidates(keypoints, keypoints, matches12, matches21)


@pytest.mark.unit
class TestMatchFromImages:
    """Tests for the full pipeline with fake collaborators."""

    def test_runs_all_stages(self) -> None:
        keypoints = grid_keypoints(12)
        descriptors = np.zeros((12, 32), dtype=np.uint8)
        source = MagicMock()
        source.detect.return_value = keypoints
        source.extract.return_value = (keypoints, descriptors)
        search = MagicMock()
        search.knn.side_effect = lambda a, b, k=2: mutual_knn(12)[0]

        matcher = build_matcher()
        matcher.set_feature_source(source)
        matcher.set_neighbor_search(search)

        image = np.zeros((50, 50), dtype=np.uint8)
        result = matcher.match(image, image)

        assert source.detect.call_count == 2
        assert source.extract.call_count == 2
        assert search.knn.call_count == 2
        assert len(result.matches) == 12
        assert result.stats.keypoints1 == 12
        assert list(result.timings_ms) == [
            "detection",
            "extraction",
            "neighbor_search",
            "ratio_test",
            "symmetry_test",
            "geometric_verification",
        ]
        assert len(result.to_cv_matches()) == 12


@pytest.mark.unit
class TestRobustMatcherOpenCV:
    """Pipeline with real OpenCV estimators on a synthetic scene."""

    def test_recovers_scene_geometry(self) -> None:
        scene = create_two_view_scene(n_inliers=50, n_outliers=10, seed=21)
        n = len(scene.matches)
        matches12, matches21 = mutual_knn(n)
        matcher = RobustMatcher(
            feature_source=MagicMock(),
            neighbor_search=BFNeighborSearch(),
            robust_estimator=RANSACFundamentalEstimator(max_iters=2000),
            exact_estimator=EightPointFundamentalEstimator(),
        )

        result = matcher.match_candidates(scene.keypoints1, scene.keypoints2, matches12, matches21)

        kept = [m.query_idx for m in result.matches]
        assert kept == sorted(kept)
        assert scene.inlier_indices <= set(kept)
        assert result.fundamental.shape == (3, 3)


@pytest.mark.unit
class TestFromSettings:
    """Tests for RobustMatcher.from_settings."""

    def test_builds_configured_matcher(self) -> None:
        settings = MagicMock()
        settings.features.detector = "orb"
        settings.features.max_features = 500
        settings.orb.scale_factor = 1.2
        settings.orb.n_levels = 8
        settings.orb.edge_threshold = 31
        settings.orb.patch_size = 31
        settings.orb.fast_threshold = 20
        settings.matching.ratio_threshold = 0.7
        settings.ransac.distance = 2.0
        settings.ransac.confidence = 0.98
        settings.ransac.max_iters = 1000
        settings.ransac.refine_fundamental = False

        matcher = RobustMatcher.from_settings(settings)

        assert matcher.params == MatcherParams(
            ratio=0.7, refine_fundamental=False, distance=2.0, confidence=0.98
        )
        assert matcher.feature_source.name == "ORB"
        assert isinstance(matcher.neighbor_search, BFNeighborSearch)
        assert isinstance(matcher.verifier.robust_estimator, RANSACFundamentalEstimator)
        assert isinstance(matcher.verifier.exact_estimator, EightPointFundamentalEstimator)
