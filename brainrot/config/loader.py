"""Layered TOML loading: config/default.toml, then config/<env>.toml."""

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "BRAINROT_CONFIG_DIR"
ENVIRONMENT_VAR = "BRAINROT_ENV"
DEFAULT_ENVIRONMENT = "development"

# How many directories above cwd are searched for config/
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the directory holding the TOML files.

    BRAINROT_CONFIG_DIR wins when set and must exist. Otherwise the
    nearest config/ at or above the working directory is used.
    """
    explicit = os.environ.get(CONFIG_DIR_VAR)
    if explicit:
        configured = Path(explicit)
        if not configured.exists():
            raise FileNotFoundError(f"Config directory not found: {explicit}")
        return configured

    cwd = Path.cwd()
    for directory in [cwd, *cwd.parents][:_SEARCH_DEPTH]:
        candidate = directory / "config"
        if candidate.exists():
            return candidate
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file; a syntax error surfaces as tomllib.TOMLDecodeError."""
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return base updated with override, merging tables key by key.

    Neither argument is mutated. A non-table value in override replaces
    whatever base held under that key.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def _layers(config_dir: Path, environment: str) -> Iterator[Path]:
    default_file = config_dir / "default.toml"
    if not default_file.exists():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_file}. "
            f"Create config/default.toml or set {CONFIG_DIR_VAR}."
        )
    yield default_file

    environment_file = config_dir / f"{environment}.toml"
    if environment_file.exists():
        yield environment_file


def load_config() -> dict[str, Any]:
    """Merge default.toml with the optional file for the current environment."""
    config: dict[str, Any] = {}
    for layer in _layers(get_config_dir(), get_environment()):
        config = deep_merge(config, load_toml(layer))
    return config
