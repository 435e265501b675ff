"""CLI tests for the speccatalog Typer application."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from speccatalog import __version__
from speccatalog.app import app
from speccatalog.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SPEC_PARSE_ERROR,
)

QUOTES = os.path.join(".", "openapi", "quotes.yaml")
TREE = os.path.join(".", "openapi", "tree.json")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestGlobalOptions:
    def test_json_and_plain_conflict(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(app, ["--json", "--plain", "discover"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "cannot be used together" in result.output


class TestDiscover:
    def test_lists_identifiers(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(app, ["--plain", "discover"])
        assert result.exit_code == 0, result.output
        assert QUOTES in result.output
        assert TREE in result.output

    def test_json_rows(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(app, ["--json", "discover"])
        assert result.exit_code == 0, result.output
        rows = json.loads(result.stdout)
        assert sorted(row["Identifier"] for row in rows) == sorted([QUOTES, TREE])

    def test_empty_directory(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--plain", "discover"])
        assert result.exit_code == 0
        assert "No specification files found" in result.output
        assert "petstore.json" in result.output

    def test_spec_dir_option(self, runner: CliRunner, project: Path) -> None:
        (project / "openapi").rename(project / "specs")
        result = runner.invoke(app, ["--plain", "--spec-dir", "specs", "discover"])
        assert result.exit_code == 0
        assert os.path.join(".", "specs", "quotes.yaml") in result.output


class TestCatalog:
    def test_json_catalog(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(app, ["--json", "catalog", QUOTES])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["identifier"] == QUOTES
        assert data["info"]["title"] == "Quotes API"
        assert "document" not in data
        assert [(op["method"], op["path"]) for op in data["operations"]] == [
            ("get", "/quotes"),
            ("post", "/quotes"),
            ("put", "/quotes"),
            ("delete", "/quotes/{id}"),
        ]
        assert data["webhooks"] == [
            {"method": "post", "name": "order.filled", "tags": ["orders"]}
        ]

    def test_plain_table(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(app, ["--plain", "catalog", QUOTES])
        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().split("\n")
        assert lines[0] == "Kind\tMethod\tPath / Name\tTags"
        assert "operation\tPUT\t/quotes\tquotes, admin" in lines
        assert "webhook\tPOST\torder.filled\torders" in lines

    def test_default_identifier_fallback(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--json", "catalog"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["info"]["title"] == "Placeholder Petstore"

    def test_unknown_identifier(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(app, ["--plain", "catalog", "./openapi/nope.json"])
        assert result.exit_code == EXIT_NOT_FOUND
        assert "Unknown specification identifier" in result.output
        assert "speccatalog discover" in result.output

    def test_malformed_spec(self, runner: CliRunner, project: Path) -> None:
        (project / "openapi" / "tree.json").write_text("{", encoding="utf-8")
        result = runner.invoke(app, ["--plain", "catalog", TREE])
        assert result.exit_code == EXIT_SPEC_PARSE_ERROR

    def test_yaml_with_boolean_key(self, runner: CliRunner, project: Path) -> None:
        (project / "openapi" / "events.yaml").write_text(
            "openapi: 3.1.0\non: true\npaths:\n  /x:\n    get: {}\n", encoding="utf-8"
        )
        identifier = os.path.join(".", "openapi", "events.yaml")
        result = runner.invoke(app, ["--json", "catalog", identifier])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["operations"] == [{"method": "get", "path": "/x", "tags": None}]

    def test_invalid_configuration(
        self, runner: CliRunner, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECCATALOG_ON_CYCLE", "explode")
        result = runner.invoke(app, ["--plain", "catalog", QUOTES])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "Invalid configuration" in result.output


class TestResolve:
    def test_prints_document(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(app, ["--json", "resolve", TREE])
        assert result.exit_code == 0, result.output
        document = json.loads(result.stdout)
        items = document["components"]["schemas"]["Node"]["properties"]["children"]["items"]
        assert items["properties"]["children"]["items"] == {
            "x-circular-ref": "#/components/schemas/Node"
        }

    def test_output_file(self, runner: CliRunner, project: Path) -> None:
        target = project / "resolved.json"
        result = runner.invoke(app, ["--json", "-o", str(target), "resolve", QUOTES])
        assert result.exit_code == 0, result.output
        document = json.loads(target.read_text(encoding="utf-8"))
        assert document["info"]["title"] == "Quotes API"
