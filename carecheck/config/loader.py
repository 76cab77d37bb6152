"""Reads layered TOML configuration from the config directory."""

import os
import tomllib
from functools import reduce
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "CARECHECK_CONFIG_DIR"
ENV_VAR = "CARECHECK_ENV"
DEFAULT_ENV = "development"

# How far up from the working directory to look for config/
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Return CARECHECK_CONFIG_DIR, or the nearest ``config/`` above the working directory."""
    if explicit := os.environ.get(CONFIG_DIR_VAR):
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_VAR} points at a missing directory: {explicit}")
        return path

    cwd = Path.cwd()
    for candidate in [cwd, *cwd.parents][:_SEARCH_DEPTH]:
        if (candidate / "config").is_dir():
            return candidate / "config"
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENV_VAR, DEFAULT_ENV)


def load_toml(file_path: Path) -> dict[str, Any]:
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` onto a copy of ``base``; tables merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(config_dir: Path | None = None, env: str | None = None) -> dict[str, Any]:
    """Merge ``default.toml`` with ``{env}.toml`` when the latter exists.

    Raises:
        FileNotFoundError: default.toml is missing
    """
    directory = config_dir or get_config_dir()
    environment = env or get_environment()

    base = directory / "default.toml"
    if not base.is_file():
        raise FileNotFoundError(
            f"Missing {base}; add config/default.toml or set {CONFIG_DIR_VAR}"
        )
    layers = [base]
    overlay = directory / f"{environment}.toml"
    if overlay.is_file():
        layers.append(overlay)

    return reduce(deep_merge, (load_toml(path) for path in layers), {})
