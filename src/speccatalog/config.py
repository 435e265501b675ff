"""Configuration loading with XDG paths and precedence resolution.

This module handles configuration for speccatalog:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.speccatalog/`` on macOS and Windows. See :func:`get_cache_dir` and
  :func:`get_data_dir`.
* **Project config** -- an optional ``./speccatalog.json`` holding
  :class:`~speccatalog.models.CatalogSettings` fields.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, project config, and defaults into the effective
  settings.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from speccatalog.exceptions import ConfigError
from speccatalog.models import CatalogSettings

_APP_NAME = "speccatalog"
_PROJECT_CONFIG_FILENAME = "speccatalog.json"

# Environment variable -> CatalogSettings field
_ENV_FIELDS = {
    "SPECCATALOG_ROOT": "root_dir",
    "SPECCATALOG_SPEC_DIR": "spec_dir",
    "SPECCATALOG_FALLBACK": "fallback_identifier",
    "SPECCATALOG_TIMEOUT": "resolve_timeout",
    "SPECCATALOG_ON_CYCLE": "on_cycle",
    "SPECCATALOG_REMOTE_REFS": "allow_remote_refs",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Used to store fetched remote reference documents. Cached data can be
    safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/speccatalog/`` (default ``~/.cache/speccatalog/``).
    On macOS/Windows: ``~/.speccatalog/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/speccatalog/`` (default ``~/.local/share/speccatalog/``).
    On macOS/Windows: ``~/.speccatalog/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``speccatalog.json``.

    Args:
        directory: Directory holding the file. Defaults to the current
            working directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _env_overrides() -> dict[str, Any]:
    """Collect settings from ``SPECCATALOG_*`` environment variables."""
    overrides: dict[str, Any] = {}
    for env_var, field in _ENV_FIELDS.items():
        value = os.environ.get(env_var)
        if value:
            overrides[field] = value
    return overrides


# --- Precedence resolution ---


def resolve_settings(**cli_overrides: Any) -> CatalogSettings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (keyword arguments whose value is not ``None``)
        2. Environment variables (``SPECCATALOG_ROOT``, ``SPECCATALOG_SPEC_DIR``,
           ``SPECCATALOG_FALLBACK``, ``SPECCATALOG_TIMEOUT``,
           ``SPECCATALOG_ON_CYCLE``, ``SPECCATALOG_REMOTE_REFS``)
        3. Project config (``speccatalog.json`` in the root directory)
        4. Defaults

    The project config is read from the root given by the CLI or
    ``SPECCATALOG_ROOT``, or from the working directory when neither is set.

    Returns:
        The validated :class:`~speccatalog.models.CatalogSettings`.

    Raises:
        ConfigError: If the project config is unreadable or any layer
            supplies an invalid value.
    """
    env = _env_overrides()
    cli = {k: v for k, v in cli_overrides.items() if v is not None}
    root = cli.get("root_dir") or env.get("root_dir")

    merged: dict[str, Any] = {}

    # 3. Project-local config
    project = load_project_config(Path(root) if root else None)
    if project is not None:
        merged.update(project)

    # 2. Environment variables
    merged.update(env)

    # 1. CLI flags (highest precedence)
    merged.update(cli)

    try:
        return CatalogSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
