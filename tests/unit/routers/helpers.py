"""Shared mock builders for router unit tests."""

from __future__ import annotations

from unittest.mock import MagicMock


def create_mock_settings(detector: str = "orb") -> MagicMock:
    """Create mock settings matching config.yaml."""
    settings = MagicMock()
    settings.service.name = "robust-matcher"
    settings.service.version = "0.1.0"
    settings.features.detector = detector
    settings.features.max_features = 1000
    settings.orb.scale_factor = 1.2
    settings.orb.n_levels = 8
    settings.orb.edge_threshold = 31
    settings.orb.patch_size = 31
    settings.orb.fast_threshold = 20
    settings.matching.ratio_threshold = 0.65
    settings.ransac.distance = 3.0
    settings.ransac.confidence = 0.99
    settings.ransac.max_iters = 2000
    settings.ransac.refine_fundamental = True
    return settings


def create_mock_state(runs: int = 0, failures: int = 0) -> MagicMock:
    state = MagicMock()
    state.uptime_seconds = 123.45
    state.uptime_formatted = "2m 3s"
    state.pipeline_runs = runs
    state.pipeline_failures = failures
    return state
