"""Pytest fixtures for router unit tests."""

from __future__ import annotations

import sys

import pytest


@pytest.fixture(autouse=True)
def _clear_module_cache() -> None:
    """Clear cached robust_matcher modules before each test.

    Routers bind get_settings at import time, so the app has to be
    imported inside each test's patch context.
    """
    modules_to_remove = [key for key in sys.modules if key.startswith("robust_matcher")]
    for module in modules_to_remove:
        del sys.modules[module]
