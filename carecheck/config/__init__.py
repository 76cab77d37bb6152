"""Configuration loading for carecheck.

Configuration is loaded from TOML files with environment variable overrides.

Usage:
    from carecheck.config import get_settings

    settings = get_settings()
    threshold = settings.pipeline.stale_threshold_seconds
"""

from functools import lru_cache

from carecheck.config.loader import load_config
from carecheck.config.settings import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton settings instance.

    The result is cached for the lifetime of the process.
    Call `get_settings.cache_clear()` to reload configuration.
    """
    return Settings.load(load_config())


def reload_settings() -> Settings:
    """Clear the settings cache and reload configuration."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
