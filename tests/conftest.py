"""Shared test fixtures for speccatalog.

Provides reusable fixtures for loading spec fixtures, laying out an isolated
project directory with an ``openapi/`` folder, and managing output state.
These fixtures are automatically discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

import pytest
import yaml

from speccatalog.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner replaces those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quotes_raw() -> dict[str, Any]:
    """Load the raw quotes 3.1 YAML spec."""
    with open(FIXTURES_DIR / "quotes.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def tree_raw() -> dict[str, Any]:
    """Load the raw self-referencing tree spec."""
    with open(FIXTURES_DIR / "tree.json", encoding="utf-8") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Project layout fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG cache/data directories into tmp_path, clears all
    SPECCATALOG_* environment variables, and changes the working directory
    to tmp_path.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "SPECCATALOG_ROOT",
        "SPECCATALOG_SPEC_DIR",
        "SPECCATALOG_FALLBACK",
        "SPECCATALOG_TIMEOUT",
        "SPECCATALOG_ON_CYCLE",
        "SPECCATALOG_REMOTE_REFS",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def project(isolated_config: Path) -> Path:
    """A project root whose ``openapi/`` directory holds the quotes and tree specs."""
    spec_dir = isolated_config / "openapi"
    spec_dir.mkdir()
    shutil.copy(FIXTURES_DIR / "quotes.yaml", spec_dir / "quotes.yaml")
    shutil.copy(FIXTURES_DIR / "tree.json", spec_dir / "tree.json")
    return isolated_config


@pytest.fixture
def write_spec():
    """Return a helper writing a dict as JSON to ``directory / name``."""

    def _write(directory: Path, name: str, data: dict[str, Any]) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()
