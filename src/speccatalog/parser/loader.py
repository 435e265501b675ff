"""Load raw specification documents and parse JSON or YAML content.

This module turns bytes on disk (or text fetched by a
:mod:`~speccatalog.parser.fetchers` strategy) into the plain ``dict`` tree
that the dereferencer walks. The format is taken from the file extension
when there is one, and detected from the content otherwise.

The public functions are:

* :func:`load_spec` -- Read and parse a local specification file.
* :func:`parse_content` -- Parse a string as JSON or YAML.
* :func:`format_hint` -- Map a file name or URL to a format hint.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from speccatalog.exceptions import SpecParseError


def load_spec(path: str | Path) -> dict[str, Any]:
    """Load a specification from a local file.

    Supports ``.json``, ``.yaml``, and ``.yml`` files. Falls back to
    content-based detection if the extension is not recognized.

    Args:
        path: Path to the local file.

    Returns:
        The parsed spec as a dictionary.

    Raises:
        SpecParseError: If the file cannot be read or its content cannot be
            parsed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    return parse_content(content, hint=format_hint(file_path.name), source=str(path))


def format_hint(name: str) -> str:
    """Return ``"json"``, ``"yaml"``, or ``""`` for a file name or URL path."""
    lowered = name.lower().split("?", 1)[0]
    if lowered.endswith(".json"):
        return "json"
    if lowered.endswith((".yaml", ".yml")):
        return "yaml"
    return ""


def parse_content(content: str, hint: str = "", source: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is ``"yaml"``), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.
    A ``"json"`` hint disables the YAML fallback, so a ``.json`` file with a
    syntax error is reported as such instead of being read as a YAML scalar.

    Args:
        content: The raw string content.
        hint: Optional format hint (``"json"`` or ``"yaml"``).
        source: Where the content came from, used in error messages.

    Returns:
        The parsed dictionary.

    Raises:
        SpecParseError: If the content cannot be parsed, or parses to
            something other than a mapping.
    """
    where = f" in {source}" if source else ""
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON{where}: {exc}") from exc
            json_error = exc
        else:
            return _require_mapping(result, where)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = f"Failed to parse spec as JSON or YAML{where}"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc

    return _require_mapping(result, where)


def _require_mapping(result: Any, where: str) -> dict[str, Any]:
    if not isinstance(result, dict):
        got = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object{where} (got {got})")
    return result
