"""Core infrastructure components."""

from robust_matcher.core.exceptions import (
    DegenerateConfigurationError,
    ServiceError,
    UnderdeterminedGeometryError,
)
from robust_matcher.core.state import AppState, get_app_state, init_app_state

__all__ = [
    "AppState",
    "DegenerateConfigurationError",
    "ServiceError",
    "UnderdeterminedGeometryError",
    "get_app_state",
    "init_app_state",
]
