"""Discover specification files and map identifiers to files.

An identifier is the public key the renderer uses to ask for a catalog. It is
the file's path relative to the root directory, prefixed to mark it as
relative, using the platform separator: ``./openapi/quotes.yaml``.

Discovery is a plain directory listing with no caching; re-running it is
cheap. A missing or empty directory is a valid, empty result. When nothing is
found, the caller falls back to :data:`DEFAULT_FALLBACK_IDENTIFIER`, which is
backed by a placeholder document bundled with the package whenever the file
does not exist on disk.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional, Sequence

from speccatalog.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_IDENTIFIER = os.path.join(".", "openapi", "petstore.json")

BUNDLED_FALLBACK = Path(__file__).parent / "bundled" / "petstore.json"

_SPEC_FILE_RE = re.compile(r"\.(json|ya?ml)$", re.IGNORECASE)


def discover(spec_dir: str | Path, root: Optional[str | Path] = None) -> list[str]:
    """List the specification files directly inside *spec_dir*.

    Only regular files whose name ends in ``.json``, ``.yaml`` or ``.yml``
    (any case) are kept. Subdirectories are not descended into.

    Args:
        spec_dir: Directory to scan. Relative paths are taken from *root*.
        root: Directory identifiers are relative to. Defaults to the
            current working directory.

    Returns:
        Identifiers in directory-listing order; empty when the directory
        does not exist or holds no matching files.
    """
    root_path = Path(root) if root is not None else Path.cwd()
    directory = Path(spec_dir)
    if not directory.is_absolute():
        directory = root_path / directory

    if not directory.is_dir():
        logger.debug("Spec directory %s does not exist", directory)
        return []

    identifiers: list[str] = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if not entry.is_file():
                continue
            if not _SPEC_FILE_RE.search(entry.name):
                continue
            identifiers.append(identifier_for(entry.path, root_path))

    logger.debug("Discovered %d spec file(s) in %s", len(identifiers), directory)
    return identifiers


def build_sources(
    spec_dir: str | Path,
    root: Optional[str | Path] = None,
    fallback: str = DEFAULT_FALLBACK_IDENTIFIER,
) -> dict[str, Path]:
    """Run discovery and map each identifier to the file backing it.

    When discovery is empty the result holds only *fallback*, mapped by
    :func:`fallback_source`.

    Raises:
        ConfigError: If the fallback is needed but cannot be backed by a file.
    """
    identifiers = discover(spec_dir, root)
    if not identifiers:
        logger.info("No spec files found in %s; falling back to %s", spec_dir, fallback)
        return {fallback: fallback_source(fallback, root)}
    return {identifier: path_for(identifier, root) for identifier in identifiers}


def identifier_for(path: str | Path, root: Optional[str | Path] = None) -> str:
    """Return the identifier for a file, e.g. ``./openapi/quotes.yaml``."""
    root_path = Path(root) if root is not None else Path.cwd()
    relative = os.path.relpath(os.path.abspath(path), os.path.abspath(root_path))
    return f".{os.sep}{relative}"


def path_for(identifier: str, root: Optional[str | Path] = None) -> Path:
    """Return the absolute file path an identifier names."""
    root_path = Path(root) if root is not None else Path.cwd()
    return Path(os.path.normpath(os.path.join(os.path.abspath(root_path), identifier)))


def select_default(
    identifiers: Sequence[str],
    fallback: str = DEFAULT_FALLBACK_IDENTIFIER,
) -> str:
    """Return the identifier the viewer opens first.

    This is the first discovered identifier, or *fallback* when discovery
    found nothing.
    """
    return identifiers[0] if identifiers else fallback


def fallback_source(
    fallback: str = DEFAULT_FALLBACK_IDENTIFIER,
    root: Optional[str | Path] = None,
) -> Path:
    """Return the file that backs the fallback identifier.

    The file named by *fallback* wins when it exists; otherwise the bundled
    placeholder specification is used.

    Raises:
        ConfigError: If neither file exists, so the fallback could not be
            resolved later.
    """
    on_disk = path_for(fallback, root)
    if on_disk.is_file():
        return on_disk
    if BUNDLED_FALLBACK.is_file():
        logger.debug("Fallback %s not on disk; using bundled placeholder", fallback)
        return BUNDLED_FALLBACK
    raise ConfigError(
        f"Fallback specification {fallback} does not exist and no bundled "
        f"placeholder is available at {BUNDLED_FALLBACK}"
    )
