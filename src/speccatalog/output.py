"""Terminal output for the speccatalog CLI.

Primary data (catalog rows, dereferenced documents) goes to stdout, or to the
``-o`` file when one is given. Status lines and errors go to stderr, so
piping ``speccatalog --json catalog`` into ``jq`` stays clean.

Rendering picks one of three modes:

* ``RICH`` -- Rich tables and syntax-highlighted JSON, used automatically
  on an interactive terminal with colour allowed.
* ``PLAIN`` -- tab-separated rows, used when stdout is piped.
* ``JSON`` -- machine-readable output, chosen with ``--json``.

Colour is disabled by ``--no-color``, by ``NO_COLOR`` (any value), and by
``TERM=dumb``.

Commands reach the active :class:`OutputManager` through :func:`get_output`
or the module-level :func:`info`, :func:`error`, etc.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from speccatalog.models import CatalogResult


class OutputFormat(str, Enum):
    """Rendering mode. ``AUTO`` becomes ``RICH`` or ``PLAIN`` at construction."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# level -> (plain prefix, rich markup, suppressed by --quiet)
_DIAGNOSTICS: dict[str, tuple[str, str, bool]] = {
    "info": ("", "{}", True),
    "error": ("Error: ", "[bold red]Error:[/bold red] {}", False),
    "suggest": ("→ ", "[dim]→ {}[/dim]", True),
}


class OutputManager:
    """Holds the rendering mode and the two Rich consoles.

    Args:
        format: Requested mode; ``AUTO`` is resolved from TTY detection.
        no_color: Disable colour and markup.
        quiet: Drop ``info`` and ``suggest`` messages.
        output_file: Write primary data here instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._output_file = output_file

        if format != OutputFormat.AUTO:
            self._format = format
        elif _is_tty() and not self._no_color:
            self._format = OutputFormat.RICH
        else:
            self._format = OutputFormat.PLAIN

        rich = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # --- stdout ---

    def print_data(self, text: str) -> None:
        """Write one chunk of raw text to the data stream."""
        if not self._output_file:
            print(text, file=sys.stdout, flush=True)
            return
        with open(self._output_file, "a", encoding="utf-8") as f:
            f.write(text if text.endswith("\n") else text + "\n")

    def print_document(self, data: Any) -> None:
        """Write a JSON-compatible value, highlighted in rich mode.

        With ``output_file`` set the file is replaced, not appended to.
        """
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._output_file:
            with open(self._output_file, "w", encoding="utf-8") as f:
                f.write(text + "\n")
        elif self._format == OutputFormat.RICH:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self.print_data(text)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as a Rich table, TSV lines, or a JSON array of objects.

        ``title`` is only shown in rich mode.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            self.print_data("\n".join("\t".join(line) for line in [headers, *rows]))
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def print_catalog(self, result: CatalogResult) -> None:
        """Write the operations and webhooks of one catalog.

        JSON mode emits the result without its ``document``; the other modes
        list one row per operation, then one per webhook.
        """
        if self._format == OutputFormat.JSON:
            self.print_document(result.model_dump(mode="json", exclude={"document"}))
            return

        rows = [
            ["operation", op.method.value.upper(), op.path, ", ".join(op.tags or [])]
            for op in result.operations
        ]
        rows.extend(
            ["webhook", hook.method.value.upper(), hook.name, ", ".join(hook.tags or [])]
            for hook in result.webhooks
        )
        self.print_table(
            ["Kind", "Method", "Path / Name", "Tags"],
            rows,
            title=f"{result.info.title} {result.info.version} -- Catalog ({len(rows)})",
        )

    # --- stderr ---

    def _diagnostic(self, level: str, message: str) -> None:
        prefix, markup, suppressible = _DIAGNOSTICS[level]
        if suppressible and self._quiet:
            return
        if self._no_color:
            print(prefix + message, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup.format(message))

    def info(self, message: str) -> None:
        self._diagnostic("info", message)

    def error(self, message: str) -> None:
        self._diagnostic("error", message)

    def suggest(self, message: str) -> None:
        """Print a next-step hint, e.g. the command to run after an error."""
        self._diagnostic("suggest", message)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the active manager, creating an ``AUTO`` one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the active manager so the next :func:`get_output` builds a new one."""
    global _output
    _output = None


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)
