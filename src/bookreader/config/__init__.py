"""Configuration package for the book reader."""

from bookreader.config.app_config import (
    ApiConfig,
    AppConfig,
    ReaderConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "ApiConfig",
    "AppConfig",
    "ReaderConfig",
    "clear_config_cache",
    "load_app_config",
]
