"""
Fixtures for integration tests.

These tests use the real application with actual OpenCV processing.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from robust_matcher.app import create_app
from robust_matcher.config import clear_settings_cache
from robust_matcher.core.state import reset_app_state

if TYPE_CHECKING:
    from collections.abc import Iterator

REPO_CONFIG = Path(__file__).resolve().parents[2] / "config.yaml"


@pytest.fixture(scope="module")
def integration_client() -> Iterator[TestClient]:
    """
    Create test client with the real application.

    Uses context manager to trigger lifespan events (state initialization).
    The client is shared across all tests in the module.
    """
    previous = os.environ.get("CONFIG_PATH")
    os.environ["CONFIG_PATH"] = str(REPO_CONFIG)
    clear_settings_cache()
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
    clear_settings_cache()
    reset_app_state()
    if previous is None:
        del os.environ["CONFIG_PATH"]
    else:
        os.environ["CONFIG_PATH"] = previous


@pytest.fixture
def client(integration_client: TestClient) -> TestClient:
    return integration_client
