"""
Configuration loader — reads ownercheck.yml into CheckSettings.

The settings file is optional. Values are merged in precedence order:

    CLI flags  >  OWNERCHECK_* env vars  >  ownercheck.yml  >  defaults

The YAML may wrap everything under a "check" key or be flat.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from ownercheck.core.models.errors import ConfigError
from ownercheck.core.models.settings import CheckSettings

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "ownercheck.yml"

ENV_PREFIX = "OWNERCHECK_"

# Settings that may come from the environment (OWNERCHECK_<NAME>)
_ENV_KEYS = (
    "output", "qps", "burst", "workers", "page_size",
    "kubeconfig", "context", "request_timeout", "snapshot",
)

__all__ = ["ConfigError", "SETTINGS_FILE", "find_settings_file", "load_settings"]


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for ownercheck.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to ownercheck.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def read_settings_file(path: Path) -> dict[str, Any]:
    """Read and parse a settings file into a plain mapping.

    Raises:
        ConfigError: If the file is missing, unreadable or not a YAML mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    section = data.get("check", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected 'check' to be a mapping in {path}")

    # YAML authors tend to write page-size / request-timeout
    return {str(k).replace("-", "_"): v for k, v in section.items()}


def settings_from_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect OWNERCHECK_* variables that name a known setting."""
    environ = os.environ if environ is None else environ
    found: dict[str, str] = {}
    for key in _ENV_KEYS:
        value = environ.get(ENV_PREFIX + key.upper())
        if value is not None and value != "":
            found[key] = value
    return found


def load_settings(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    search: bool = True,
) -> CheckSettings:
    """Load and validate settings for a check run.

    Args:
        path: Explicit path to a settings file. If None and ``search`` is
            set, ownercheck.yml is searched upward from the cwd.
        overrides: Values from CLI flags. ``None`` values are ignored.
        environ: Environment mapping (default: ``os.environ``).
        search: Whether to look for ownercheck.yml when ``path`` is None.

    Returns:
        Validated CheckSettings.

    Raises:
        ConfigError: If the file or any merged value is invalid.
    """
    merged: dict[str, Any] = {}

    if path is None and search:
        path = find_settings_file()
    if path is not None:
        merged.update(read_settings_file(path))

    merged.update(settings_from_env(environ))

    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    try:
        settings = CheckSettings.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {_format_validation_error(e)}") from e

    logger.debug(
        "Settings: output=%r qps=%d burst=%d workers=%d snapshot=%s",
        settings.output, settings.qps, settings.burst, settings.workers, settings.snapshot,
    )
    return settings


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "settings"
        parts.append(f"{loc}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)
