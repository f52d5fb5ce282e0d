"""Application configuration loader.

Loads centralized configuration from data/config/reader_config_v1.yaml,
falling back to built-in defaults. The API URL can be overridden with the
BOOKREADER_API_URL environment variable.

Usage:
    from bookreader.config.app_config import load_app_config

    config = load_app_config()
    levels = config.reader.zoom_levels
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/reader_config_v1.yaml")

API_URL_ENV = "BOOKREADER_API_URL"


@dataclass
class ApiConfig:
    """Configuration for the external school library REST API."""

    base_url: str = "http://localhost:3001/api"
    timeout: float = 30.0
    uploads_prefix: str = "/uploads"


@dataclass
class ReaderConfig:
    """Configuration for the book reader engine."""

    zoom_levels: list[float] = field(
        default_factory=lambda: [0.5, 0.75, 1.0, 1.25, 1.5]
    )
    default_scale: float = 1.0
    flip_phase_ms: int = 500

    def __post_init__(self) -> None:
        # ZoomController works on ascending levels; keep indexes aligned
        self.zoom_levels = sorted(self.zoom_levels)

    @property
    def default_zoom_index(self) -> int:
        """Index of the default scale inside zoom_levels."""
        if self.default_scale in self.zoom_levels:
            return self.zoom_levels.index(self.default_scale)
        # Closest level when the default is not one of the levels
        return min(
            range(len(self.zoom_levels)),
            key=lambda i: abs(self.zoom_levels[i] - self.default_scale),
        )

    @property
    def flip_phase_seconds(self) -> float:
        return self.flip_phase_ms / 1000


@dataclass
class AppConfig:
    """Application-wide configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    reader: ReaderConfig = field(default_factory=ReaderConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "api": {
            "base_url": "http://localhost:3001/api",
            "timeout": 30.0,
            "uploads_prefix": "/uploads",
        },
        "reader": {
            "zoom_levels": [0.5, 0.75, 1.0, 1.25, 1.5],
            "default_scale": 1.0,
            "flip_phase_ms": 500,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    api_data = {**defaults["api"], **(data.get("api") or {})}
    api = ApiConfig(
        base_url=os.environ.get(API_URL_ENV) or api_data["base_url"],
        timeout=float(api_data["timeout"]),
        uploads_prefix=api_data["uploads_prefix"],
    )

    reader_data = {**defaults["reader"], **(data.get("reader") or {})}
    levels = sorted(float(level) for level in reader_data["zoom_levels"])
    if not levels:
        logger.warning("app_config.empty_zoom_levels")
        levels = list(defaults["reader"]["zoom_levels"])

    reader = ReaderConfig(
        zoom_levels=levels,
        default_scale=float(reader_data["default_scale"]),
        flip_phase_ms=int(reader_data["flip_phase_ms"]),
    )

    return AppConfig(api=api, reader=reader)


def load_app_config(
    config_path: Path | None = None, force_reload: bool = False
) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        config_path: Optional YAML file to read instead of CONFIG_FILE.
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload and config_path is None:
        return _cached_config

    source = config_path or CONFIG_FILE
    data: dict[str, Any]

    if source.exists():
        logger.debug("loading_app_config", source=str(source))
        data = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
