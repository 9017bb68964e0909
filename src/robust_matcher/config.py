"""
Configuration management for the robust matcher.

Loads configuration from YAML with ZERO defaults.
Every value must be explicitly specified or startup fails.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "ConfigurationError",
    "FeaturesConfig",
    "MatchingConfig",
    "ORBConfig",
    "RANSACConfig",
    "ServerConfig",
    "ServiceConfig",
    "Settings",
    "clear_settings_cache",
    "create_settings_loader",
    "get_config_path",
    "get_settings",
    "load_settings",
    "load_yaml_config",
]

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class ServiceConfig(BaseModel):
    """Service identity configuration."""

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str


class FeaturesConfig(BaseModel):
    """Feature detector selection."""

    model_config = ConfigDict(extra="forbid")

    detector: Literal["orb", "sift"]
    max_features: int = Field(gt=0)


class ORBConfig(BaseModel):
    """ORB feature detector configuration."""

    model_config = ConfigDict(extra="forbid")

    scale_factor: float = Field(gt=1.0)
    n_levels: int = Field(gt=0)
    edge_threshold: int
    patch_size: int
    fast_threshold: int


class MatchingConfig(BaseModel):
    """Descriptor matching configuration."""

    model_config = ConfigDict(extra="forbid")

    ratio_threshold: float = Field(gt=0.0, le=1.0)


class RANSACConfig(BaseModel):
    """Fundamental matrix estimation configuration."""

    model_config = ConfigDict(extra="forbid")

    distance: float = Field(gt=0.0)
    """Maximum distance (pixels) from the epipolar line to count as inlier."""

    confidence: float = Field(gt=0.0, lt=1.0)
    max_iters: int = Field(gt=0)
    refine_fundamental: bool


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    model_config = ConfigDict(extra="forbid")

    host: str
    port: int
    log_level: str


class Settings(BaseModel):
    """
    Root configuration container.

    All fields are REQUIRED. No defaults exist.
    Missing fields cause immediate startup failure.

    Usage:
        from robust_matcher.config import get_settings
        settings = get_settings()
    """

    model_config = ConfigDict(extra="forbid")

    service: ServiceConfig
    features: FeaturesConfig
    orb: ORBConfig
    matching: MatchingConfig
    ransac: RANSACConfig
    server: ServerConfig


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load and parse YAML configuration file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Parsed configuration dictionary

    Raises:
        ConfigurationError: If file is missing, empty, or invalid
    """
    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}\n"
            f"Expected location: {config_path.absolute()}\n"
            f"Create the file or set CONFIG_PATH environment variable."
        )

    try:
        with config_path.open() as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config is None:
        raise ConfigurationError(
            f"Configuration file is empty: {config_path}\n"
            f"All configuration values must be explicitly specified."
        )

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Configuration must be a YAML mapping, got {type(config).__name__}"
        )

    return config


def get_config_path() -> Path:
    """
    Determine configuration file path.

    Uses CONFIG_PATH environment variable if set, otherwise defaults
    to ./config.yaml relative to working directory.

    Returns:
        Path to configuration file
    """
    return Path(os.environ.get("CONFIG_PATH", "config.yaml"))


def load_settings(
    settings_model: type[ModelT],
    yaml_config: dict[str, Any],
) -> ModelT:
    """
    Build typed settings from raw YAML config.

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        return settings_model(**yaml_config)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}\n"
            f"All configuration values must be explicitly specified.\n"
            f"No default values are allowed."
        ) from e


def create_settings_loader(
    settings_model: type[ModelT],
    get_config_path_fn: Callable[[], Path],
) -> tuple[Callable[[], ModelT], Callable[[], None]]:
    """
    Create cached settings getter and cache resetter.

    Args:
        settings_model: Pydantic settings model type
        get_config_path_fn: Function that resolves the config path

    Returns:
        Tuple of (get_settings, clear_settings_cache)
    """

    @lru_cache
    def get_settings() -> ModelT:
        config_path = get_config_path_fn()
        yaml_config = load_yaml_config(config_path)
        return load_settings(settings_model, yaml_config)

    def clear_settings_cache() -> None:
        get_settings.cache_clear()

    return get_settings, clear_settings_cache


get_settings, clear_settings_cache = create_settings_loader(Settings, get_config_path)
