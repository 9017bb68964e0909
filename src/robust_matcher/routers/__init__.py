"""API routers for the robust matcher."""

from robust_matcher.routers import extract, health, info, match

__all__ = ["extract", "health", "info", "match"]
