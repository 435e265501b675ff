"""Pluggable strategies for loading documents named by external ``$ref`` values.

A reference such as ``common.yaml#/components/schemas/Money`` or
``https://schemas.example.com/money.json`` points outside the document being
dereferenced. The dereferencer never performs I/O itself; it hands the
absolute location to a :class:`RefFetcher`.

This module defines:

- :class:`RefFetcher` -- the abstract strategy.
- :class:`LocalFileFetcher` -- reads sibling files from disk in a worker
  thread so the event loop stays free.
- :class:`HttpFetcher` -- fetches ``http(s)`` URLs with :mod:`httpx`,
  optionally backed by a :class:`~speccatalog.cache.RemoteDocumentCache`.
- :class:`CompositeFetcher` -- dispatches on the location's scheme and
  rejects kinds of reference that are disabled by configuration.

See Also:
    :func:`speccatalog.parser.resolver.dereference` for the consumer.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import httpx

from speccatalog.cache import RemoteDocumentCache
from speccatalog.exceptions import ReferenceError_, ResolutionTimeoutError
from speccatalog.parser.loader import format_hint, load_spec, parse_content

logger = logging.getLogger(__name__)


def is_url(location: str) -> bool:
    """Return True if *location* is an ``http`` or ``https`` URL."""
    return location.startswith(("http://", "https://"))


class RefFetcher(ABC):
    """Abstract base class for external reference loaders.

    Implementations receive an absolute location (a filesystem path or a
    URL) and return the parsed document. Failures to reach the target raise
    :class:`~speccatalog.exceptions.ReferenceError_`; malformed content
    raises :class:`~speccatalog.exceptions.SpecParseError`.
    """

    @abstractmethod
    async def fetch(self, location: str) -> dict[str, Any]:
        """Load and parse the document at *location*."""

    async def aclose(self) -> None:
        """Release any held resources (connections, cache handles)."""


class LocalFileFetcher(RefFetcher):
    """Load referenced files from the local filesystem."""

    async def fetch(self, location: str) -> dict[str, Any]:
        path = Path(location)
        if not path.is_file():
            raise ReferenceError_(f"Referenced file not found: {location}")
        logger.debug("Loading referenced file %s", location)
        return await asyncio.to_thread(load_spec, path)


class HttpFetcher(RefFetcher):
    """Fetch referenced documents over HTTP(S).

    Args:
        timeout: Per-request timeout in seconds.
        cache: Optional disk cache consulted before, and filled after, each
            successful fetch.
        client: An existing :class:`httpx.AsyncClient` to use. When ``None``
            a client is created lazily and closed by :meth:`aclose`.

    Example::

        fetcher = HttpFetcher(timeout=5.0)
        try:
            doc = await fetcher.fetch("https://example.com/common.json")
        finally:
            await fetcher.aclose()
    """

    def __init__(
        self,
        timeout: float = 10.0,
        cache: Optional[RemoteDocumentCache] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._timeout = timeout
        self._cache = cache
        self._client = client
        self._owns_client = client is None

    async def fetch(self, location: str) -> dict[str, Any]:
        if self._cache is not None:
            cached = self._cache.get(location)
            if cached is not None:
                logger.debug("Remote document cache hit for %s", location)
                return cached

        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            )

        logger.debug("Fetching referenced document %s", location)
        try:
            response = await self._client.get(location)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ResolutionTimeoutError(
                f"Timed out fetching referenced document {location}"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ReferenceError_(
                f"HTTP {exc.response.status_code} fetching referenced document {location}"
            ) from exc
        except httpx.RequestError as exc:
            raise ReferenceError_(
                f"Failed to fetch referenced document {location}: {exc}"
            ) from exc

        content_type = response.headers.get("content-type", "")
        hint = format_hint(location)
        if "json" in content_type:
            hint = "json"
        elif "yaml" in content_type or "yml" in content_type:
            hint = "yaml"

        document = parse_content(response.text, hint=hint, source=location)
        if self._cache is not None:
            self._cache.set(location, document)
        return document

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        if self._cache is not None:
            self._cache.close()


class CompositeFetcher(RefFetcher):
    """Route each location to the file or HTTP strategy.

    A strategy left as ``None`` disables that kind of reference; following
    one then raises :class:`~speccatalog.exceptions.ReferenceError_`.
    """

    def __init__(
        self,
        file_fetcher: Optional[RefFetcher] = None,
        http_fetcher: Optional[RefFetcher] = None,
    ) -> None:
        self._file = file_fetcher
        self._http = http_fetcher

    async def fetch(self, location: str) -> dict[str, Any]:
        if is_url(location):
            if self._http is None:
                raise ReferenceError_(
                    f"Remote $ref not allowed: {location}. "
                    "Enable allow_remote_refs to follow it."
                )
            return await self._http.fetch(location)
        if self._file is None:
            raise ReferenceError_(
                f"File $ref not allowed: {location}. "
                "Enable allow_file_refs to follow it."
            )
        return await self._file.fetch(location)

    async def aclose(self) -> None:
        for fetcher in (self._file, self._http):
            if fetcher is not None:
                await fetcher.aclose()
