"""
Configuration management for the alignment service.

Loads configuration from YAML with ZERO defaults.
Every value must be explicitly specified or startup fails.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

__all__ = [
    "REDACTION_MARKER",
    "ConfigurationError",
    "EstimationConfig",
    "MatchingConfig",
    "ORBConfig",
    "RANSACConfig",
    "ServerConfig",
    "ServiceConfig",
    "SessionsConfig",
    "Settings",
    "clear_settings_cache",
    "get_config_path",
    "get_safe_config",
    "get_settings",
    "is_sensitive_key",
    "load_yaml_config",
    "redact_sensitive_values",
]


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""


# Keywords that indicate sensitive data (case-insensitive)
SENSITIVE_KEYWORDS: frozenset[str] = frozenset(
    {"key", "secret", "pass", "token", "credential", "auth", "private", "bearer"}
)

_SENSITIVE_PATTERN = re.compile(
    "|".join(re.escape(kw) for kw in sorted(SENSITIVE_KEYWORDS)),
    re.IGNORECASE,
)

REDACTION_MARKER: str = "[REDACTED]"


class ServiceConfig(BaseModel):
    """Service identity configuration."""

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str


class ORBConfig(BaseModel):
    """ORB keypoint detector configuration."""

    model_config = ConfigDict(extra="forbid")

    max_features: int
    scale_factor: float
    n_levels: int
    edge_threshold: int
    patch_size: int
    fast_threshold: int


class MatchingConfig(BaseModel):
    """Descriptor matching configuration."""

    model_config = ConfigDict(extra="forbid")

    cross_check: bool
    max_matches: int


class RANSACConfig(BaseModel):
    """Robust match filter configuration."""

    model_config = ConfigDict(extra="forbid")

    iterations: int
    inlier_threshold: float
    min_pair_distance: float
    min_scale: float
    max_scale: float
    candidate_limit: int

    @model_validator(mode="after")
    def _check_scale_range(self) -> RANSACConfig:
        if not 0 < self.min_scale <= self.max_scale:
            raise ValueError("ransac scale range must satisfy 0 < min_scale <= max_scale")
        return self


class EstimationConfig(BaseModel):
    """Similarity estimation configuration."""

    model_config = ConfigDict(extra="forbid")

    min_pairs: int


class SessionsConfig(BaseModel):
    """Alignment session configuration."""

    model_config = ConfigDict(extra="forbid")

    max_events: int


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
        from alignment_service.config import get_settings
        settings = get_settings()
    """

    model_config = ConfigDict(extra="forbid")

    service: ServiceConfig
    orb: ORBConfig
    matching: MatchingConfig
    ransac: RANSACConfig
    estimation: EstimationConfig
    sessions: SessionsConfig
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
        raise ConfigurationError(f"Configuration file is empty: {config_path}")

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


@lru_cache
def get_settings() -> Settings:
    """
    Load and validate settings once per process.

    Raises:
        ConfigurationError: If the file is unusable or fails validation
    """
    yaml_config = load_yaml_config(get_config_path())
    try:
        return Settings(**yaml_config)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}\n"
            f"All configuration values must be explicitly specified."
        ) from e


def clear_settings_cache() -> None:
    """Forget cached settings so the next call reloads the file."""
    get_settings.cache_clear()


def is_sensitive_key(key: str) -> bool:
    """Check if a configuration key contains sensitive keywords."""
    return bool(_SENSITIVE_PATTERN.search(key))


def redact_sensitive_values(data: dict[str, Any], redaction_marker: str) -> dict[str, Any]:
    """
    Recursively redact sensitive values from configuration.

    Args:
        data: Configuration dictionary
        redaction_marker: String to replace sensitive values

    Returns:
        New dictionary with sensitive values redacted
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        if is_sensitive_key(key):
            result[key] = redaction_marker
        elif isinstance(value, dict):
            result[key] = redact_sensitive_values(value, redaction_marker)
        elif isinstance(value, list):
            result[key] = [
                redact_sensitive_values(item, redaction_marker) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value
    return result


def get_safe_config() -> dict[str, Any]:
    """
    Get configuration with sensitive values redacted.

    Returns:
        Configuration dictionary safe for logging/API exposure
    """
    return redact_sensitive_values(get_settings().model_dump(), REDACTION_MARKER)
