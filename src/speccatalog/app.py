"""Typer application and CLI entry point for speccatalog.

The CLI is a diagnostic window onto the same API the documentation renderer
uses:

* ``speccatalog discover`` -- list the identifiers discovery produces.
* ``speccatalog catalog [IDENTIFIER]`` -- show the operations and webhooks of
  one document (the default document when omitted).
* ``speccatalog resolve IDENTIFIER`` -- print the fully dereferenced document.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`speccatalog.config`: Settings resolution used by every command.
    :mod:`speccatalog.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler

from speccatalog import __version__
from speccatalog.exceptions import InvalidUsageError, NotFoundError, SpecCatalogError
from speccatalog.exit_codes import EXIT_GENERIC_FAILURE

T = TypeVar("T")

app = typer.Typer(
    name="speccatalog",
    help="Discover API specifications and list their operations and webhooks.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"speccatalog {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    root: Optional[Path] = typer.Option(
        None, "--root", help="Directory identifiers are relative to."
    ),
    spec_dir: Optional[str] = typer.Option(
        None, "--spec-dir", help="Directory scanned for specification files."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds allowed to resolve one document."
    ),
    remote_refs: Optional[bool] = typer.Option(
        None, "--remote-refs/--no-remote-refs", help="Follow $refs to http(s) URLs."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Output file path."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~speccatalog.output.OutputManager` and
    logging from CLI flags, and stores the settings overrides in the Typer
    context for sub-commands.
    """
    from speccatalog.output import OutputFormat, OutputManager, set_output

    def _output_format() -> OutputFormat:
        if json_output and plain_output:
            raise InvalidUsageError("--json and --plain cannot be used together")
        if json_output:
            return OutputFormat.JSON
        if plain_output:
            return OutputFormat.PLAIN
        return OutputFormat.AUTO

    set_output(
        OutputManager(
            format=_guard(_output_format),
            no_color=no_color,
            quiet=quiet,
            output_file=output_file,
        )
    )
    _setup_logging(verbose, no_color)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = {
        "root_dir": root,
        "spec_dir": spec_dir,
        "resolve_timeout": timeout,
        "allow_remote_refs": remote_refs,
    }


def _setup_logging(verbose: bool, no_color: bool) -> None:
    """Route library logging to stderr; DEBUG with ``--verbose``, WARNING otherwise."""
    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_path=False,
        show_time=False,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("discover")
def discover_command(ctx: typer.Context) -> None:
    """List the specification identifiers found in the spec directory.

    Example::

        speccatalog discover
        speccatalog --spec-dir specs discover
    """
    from speccatalog.locator import discover, path_for
    from speccatalog.output import get_output, info, suggest

    settings = _settings(ctx)
    root = settings.root()
    identifiers = _guard(lambda: discover(settings.spec_dir, root))

    if not identifiers:
        info(f"No specification files found in {settings.spec_path()}.")
        suggest(f"The viewer will fall back to {settings.fallback_identifier}")
        return

    rows = [[identifier, str(path_for(identifier, root))] for identifier in identifiers]
    get_output().print_table(
        ["Identifier", "File"], rows, title=f"Specifications ({len(rows)})"
    )


@app.command("catalog")
def catalog_command(
    ctx: typer.Context,
    identifier: Optional[str] = typer.Argument(
        None, help="Identifier to show. Defaults to the first discovered document."
    ),
) -> None:
    """Show the operations and webhooks of one specification.

    Example::

        speccatalog catalog
        speccatalog --json catalog ./openapi/quotes.yaml
    """
    from speccatalog.catalog import CatalogService
    from speccatalog.output import get_output

    settings = _settings(ctx)

    async def _load():
        async with CatalogService.from_settings(settings) as service:
            return await service.get_catalog(identifier or service.default_identifier)

    get_output().print_catalog(_run(_load))


@app.command("resolve")
def resolve_command(
    ctx: typer.Context,
    identifier: str = typer.Argument(..., help="Identifier to dereference."),
) -> None:
    """Print the fully dereferenced document for IDENTIFIER.

    Example::

        speccatalog resolve ./openapi/quotes.yaml -o quotes.resolved.json
    """
    from speccatalog.documents import DocumentResolver
    from speccatalog.output import get_output

    settings = _settings(ctx)

    async def _load():
        async with DocumentResolver.from_settings(settings) as resolver:
            return await resolver.resolve(identifier)

    get_output().print_document(_run(_load))


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _settings(ctx: typer.Context):  # noqa: ANN202
    """Resolve effective settings from the overrides stored by the callback."""
    from speccatalog.config import resolve_settings

    overrides = (ctx.obj or {}).get("settings", {})
    return _guard(lambda: resolve_settings(**overrides))


def _guard(func: Callable[[], T]) -> T:
    """Call *func*, turning a :class:`SpecCatalogError` into a clean exit."""
    from speccatalog.output import error, suggest

    try:
        return func()
    except SpecCatalogError as exc:
        error(str(exc))
        if isinstance(exc, NotFoundError):
            suggest("Run: speccatalog discover")
        raise typer.Exit(code=exc.exit_code) from None


def _run(factory: Callable[[], Awaitable[T]]) -> T:
    """Run a coroutine to completion under :func:`_guard`."""
    return _guard(lambda: asyncio.run(factory()))


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from speccatalog.config import get_data_dir

    logs_dir = get_data_dir()
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``speccatalog`` console script.

    :class:`~speccatalog.exceptions.SpecCatalogError` instances that escape
    a command cause a clean exit with the error's ``exit_code``. All other
    exceptions produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from speccatalog.output import error

        if isinstance(exc, SpecCatalogError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
