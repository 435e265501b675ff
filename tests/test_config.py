"""Tests for speccatalog.config -- XDG paths, project config, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from speccatalog.config import (
    get_cache_dir,
    get_data_dir,
    load_project_config,
    resolve_settings,
)
from speccatalog.exceptions import ConfigError
from speccatalog.locator import DEFAULT_FALLBACK_IDENTIFIER
from speccatalog.models import CatalogSettings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_cache_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("speccatalog.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_cache_dir()
        assert result == tmp_path / ".cache" / "speccatalog"
        assert result.is_dir()

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_cache"
        monkeypatch.setattr("speccatalog.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(custom))

        result = get_cache_dir()
        assert result == custom / "speccatalog"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("speccatalog.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "speccatalog"
        assert result.is_dir()

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_data"
        monkeypatch.setattr("speccatalog.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(custom))

        result = get_data_dir()
        assert result == custom / "speccatalog"
        assert result.is_dir()


class TestXDGPathsFallback:
    """Fallback paths on non-XDG platforms (macOS, Windows)."""

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("speccatalog.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_cache_dir()
        assert result == tmp_path / ".speccatalog" / "cache"
        assert result.is_dir()

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("speccatalog.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".speccatalog" / "logs"
        assert result.is_dir()


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_load_returns_none_when_missing(self, tmp_path: Path) -> None:
        assert load_project_config(tmp_path) is None

    def test_load_valid_project_config(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "speccatalog.json", {"spec_dir": "specs"})
        assert load_project_config(tmp_path) == {"spec_dir": "specs"}

    def test_defaults_to_working_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(tmp_path / "speccatalog.json", {"on_cycle": "error"})
        monkeypatch.chdir(tmp_path)
        assert load_project_config() == {"on_cycle": "error"}

    def test_load_invalid_json_raises_config_error(self, tmp_path: Path) -> None:
        (tmp_path / "speccatalog.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config(tmp_path)

    def test_non_object_raises_config_error(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "speccatalog.json", ["specs"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config(tmp_path)


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveSettings:
    """CLI > env > project config > defaults."""

    def test_defaults(self, isolated_config: Path) -> None:
        settings = resolve_settings()
        assert settings.spec_dir == "openapi"
        assert settings.fallback_identifier == DEFAULT_FALLBACK_IDENTIFIER
        assert settings.resolve_timeout == 30.0
        assert settings.on_cycle == "marker"
        assert settings.allow_file_refs is True
        assert settings.allow_remote_refs is False
        assert settings.root() == Path.cwd()

    def test_project_overrides_defaults(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "speccatalog.json",
            {"spec_dir": "specs", "remote_cache": {"enabled": True, "ttl_seconds": 60}},
        )
        settings = resolve_settings()
        assert settings.spec_dir == "specs"
        assert settings.remote_cache.enabled is True
        assert settings.remote_cache.ttl_seconds == 60
        assert settings.spec_path() == isolated_config / "specs"

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "speccatalog.json", {"spec_dir": "specs"})
        monkeypatch.setenv("SPECCATALOG_SPEC_DIR", "from-env")
        assert resolve_settings().spec_dir == "from-env"

    def test_project_config_read_from_cli_root(self, isolated_config: Path) -> None:
        site = isolated_config / "site"
        _write_json(site / "speccatalog.json", {"spec_dir": "specs"})
        _write_json(isolated_config / "speccatalog.json", {"spec_dir": "cwd-specs"})
        settings = resolve_settings(root_dir=site)
        assert settings.spec_dir == "specs"
        assert settings.spec_path() == site / "specs"

    def test_project_config_read_from_env_root(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        site = isolated_config / "site"
        _write_json(site / "speccatalog.json", {"on_cycle": "error"})
        monkeypatch.setenv("SPECCATALOG_ROOT", str(site))
        assert resolve_settings().on_cycle == "error"

    def test_env_values_are_coerced(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECCATALOG_TIMEOUT", "2.5")
        monkeypatch.setenv("SPECCATALOG_REMOTE_REFS", "true")
        monkeypatch.setenv("SPECCATALOG_ROOT", str(isolated_config / "elsewhere"))
        settings = resolve_settings()
        assert settings.resolve_timeout == 2.5
        assert settings.allow_remote_refs is True
        assert settings.root() == isolated_config / "elsewhere"

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECCATALOG_SPEC_DIR", "from-env")
        assert resolve_settings(spec_dir="from-cli").spec_dir == "from-cli"

    def test_cli_none_is_ignored(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECCATALOG_SPEC_DIR", "from-env")
        assert resolve_settings(spec_dir=None).spec_dir == "from-env"

    def test_invalid_value_raises_config_error(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECCATALOG_ON_CYCLE", "explode")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_settings()


class TestCatalogSettingsDefaults:
    def test_fallback_uses_platform_separator(self) -> None:
        assert CatalogSettings().fallback_identifier == DEFAULT_FALLBACK_IDENTIFIER
