"""Resolve identifiers to dereferenced documents, once per identifier.

:class:`DocumentResolver` is the only stateful part of the core. It owns a
:class:`~speccatalog.cache.DocumentCache` and the set of identifiers produced
by the last discovery scan, and guarantees:

* **Lazy, memoized loading** -- the first :meth:`~DocumentResolver.resolve`
  for an identifier reads and dereferences the file; later calls return the
  cached document without touching storage.
* **Single-flight** -- concurrent calls for an identifier that is not cached
  yet attach to one shared :class:`asyncio.Task`. All of them receive the
  same document instance, or the same exception.
* **Caller cancellation is isolated** -- callers await the shared task
  through :func:`asyncio.shield`, so abandoning one request never cancels a
  pass other callers are waiting on.
* **Bounded passes** -- a pass that exceeds ``timeout`` seconds fails with
  :class:`~speccatalog.exceptions.ResolutionTimeoutError` and frees the slot.
* **No cached failures** -- a failed pass leaves nothing behind, so the next
  call retries.

Cache entries change only through :meth:`~DocumentResolver.reload`,
:meth:`~DocumentResolver.invalidate`, and :meth:`~DocumentResolver.rescan`.
A pass that was in flight when its identifier was invalidated or dropped by a
rescan still answers its own callers, but its result is not cached.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from speccatalog.cache import DocumentCache, RemoteDocumentCache
from speccatalog.config import get_cache_dir
from speccatalog.exceptions import ConfigError, NotFoundError, ResolutionTimeoutError
from speccatalog.locator import DEFAULT_FALLBACK_IDENTIFIER, build_sources
from speccatalog.models import CatalogSettings
from speccatalog.parser.fetchers import (
    CompositeFetcher,
    HttpFetcher,
    LocalFileFetcher,
    RefFetcher,
)
from speccatalog.parser.loader import load_spec
from speccatalog.parser.resolver import CycleMode, dereference

logger = logging.getLogger(__name__)


def build_fetcher(settings: CatalogSettings) -> CompositeFetcher:
    """Create the external-reference strategy described by *settings*."""
    file_fetcher = LocalFileFetcher() if settings.allow_file_refs else None
    http_fetcher = None
    if settings.allow_remote_refs:
        remote_cache = None
        if settings.remote_cache.enabled:
            remote_cache = RemoteDocumentCache(get_cache_dir(), settings.remote_cache)
        http_fetcher = HttpFetcher(timeout=settings.http_timeout, cache=remote_cache)
    return CompositeFetcher(file_fetcher=file_fetcher, http_fetcher=http_fetcher)


class DocumentResolver:
    """Identifier -> dereferenced document, cached and single-flight.

    Args:
        sources: Map from identifier to the file backing it, usually from
            :func:`~speccatalog.locator.build_sources`.
        cache: Cache to store documents in. A private one is created when
            ``None``.
        fetcher: Strategy for external references. ``None`` restricts
            documents to internal ``#/...`` references.
        timeout: Seconds allowed for one load-and-dereference pass, or
            ``None`` for no bound.
        on_cycle: Passed to :func:`~speccatalog.parser.resolver.dereference`.
        spec_dir: Directory :meth:`rescan` scans. Required for rescans.
        root: Root directory identifiers are relative to.
        fallback: Identifier used when a rescan finds nothing.

    Example::

        resolver = DocumentResolver.from_settings(resolve_settings())
        async with resolver:
            document = await resolver.resolve("./openapi/quotes.yaml")
    """

    def __init__(
        self,
        sources: Mapping[str, str | Path],
        *,
        cache: Optional[DocumentCache] = None,
        fetcher: Optional[RefFetcher] = None,
        timeout: Optional[float] = 30.0,
        on_cycle: CycleMode = "marker",
        spec_dir: Optional[str | Path] = None,
        root: Optional[str | Path] = None,
        fallback: str = DEFAULT_FALLBACK_IDENTIFIER,
    ) -> None:
        self._sources: dict[str, Path] = {k: Path(v) for k, v in sources.items()}
        self._cache = cache if cache is not None else DocumentCache()
        self._fetcher = fetcher
        self._timeout = timeout
        self._on_cycle = on_cycle
        self._spec_dir = spec_dir
        self._root = root
        self._fallback = fallback
        self._inflight: dict[str, asyncio.Task[dict[str, Any]]] = {}
        # Bumped whenever an identifier is invalidated or forgotten; a pass
        # only caches its result if the generation it started with is current.
        self._generations: dict[str, int] = {}

    @classmethod
    def from_settings(
        cls,
        settings: CatalogSettings,
        cache: Optional[DocumentCache] = None,
    ) -> DocumentResolver:
        """Run discovery and build a resolver from effective settings.

        Raises:
            ConfigError: If discovery is empty and the fallback cannot be
                backed by a file.
        """
        root = settings.root()
        sources = build_sources(settings.spec_dir, root, settings.fallback_identifier)
        return cls(
            sources,
            cache=cache,
            fetcher=build_fetcher(settings),
            timeout=settings.resolve_timeout,
            on_cycle=settings.on_cycle,
            spec_dir=settings.spec_dir,
            root=root,
            fallback=settings.fallback_identifier,
        )

    async def __aenter__(self) -> DocumentResolver:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    @property
    def identifiers(self) -> list[str]:
        """Identifiers known from the last discovery scan, in listing order."""
        return list(self._sources)

    def is_cached(self, identifier: str) -> bool:
        return identifier in self._cache

    async def resolve(self, identifier: str) -> dict[str, Any]:
        """Return the dereferenced document for *identifier*.

        Raises:
            NotFoundError: If *identifier* was not produced by discovery or
                its file has disappeared.
            SpecParseError: If the file is not well-formed JSON or YAML.
            ReferenceError_: If a reference cannot be resolved.
            ResolutionTimeoutError: If the pass exceeds the timeout.
        """
        if identifier not in self._sources:
            raise NotFoundError(f"Unknown specification identifier: {identifier}")
        document = self._cache.get(identifier)
        if document is not None:
            return document
        return await self._join(identifier)

    async def reload(self, identifier: str) -> dict[str, Any]:
        """Re-read and re-dereference *identifier*, replacing its cache entry.

        The previous document stays visible to :meth:`resolve` until the new
        pass succeeds; on failure it is kept. A reload requested while a
        pass for the same identifier is in flight joins that pass.
        """
        return await self._join(identifier)

    def invalidate(self, identifier: Optional[str] = None) -> None:
        """Drop the cache entry for *identifier*, or every entry when ``None``.

        Passes already in flight are detached: the next :meth:`resolve`
        starts a fresh one.
        """
        if identifier is None:
            self._cache.clear()
            for known in {*self._sources, *self._inflight}:
                self._forget(known)
        else:
            self._cache.pop(identifier)
            self._forget(identifier)

    def rescan(self) -> list[str]:
        """Re-run discovery and update the known identifiers.

        New files become resolvable, vanished ones are forgotten along with
        their cache entries. Identifiers present in both scans keep their
        cached documents; use :meth:`reload` to refresh them.

        Returns:
            The identifiers after the scan.

        Raises:
            ConfigError: If this resolver was built without a spec directory.
        """
        if self._spec_dir is None:
            raise ConfigError("Cannot rescan: no spec directory configured")
        sources = build_sources(self._spec_dir, self._root, self._fallback)
        for identifier in {*self._cache, *self._inflight}:
            if identifier not in sources:
                self._cache.pop(identifier)
                self._forget(identifier)
        self._sources = sources
        return list(sources)

    async def aclose(self) -> None:
        """Close the external-reference fetcher."""
        if self._fetcher is not None:
            await self._fetcher.aclose()

    # ------------------------------------------------------------------ #
    # Single-flight machinery
    # ------------------------------------------------------------------ #

    async def _join(self, identifier: str) -> dict[str, Any]:
        source = self._sources.get(identifier)
        if source is None:
            raise NotFoundError(f"Unknown specification identifier: {identifier}")

        task = self._inflight.get(identifier)
        if task is None:
            generation = self._generations.get(identifier, 0)
            task = asyncio.create_task(self._run(identifier, source, generation))
            task.add_done_callback(_retrieve_exception)
            self._inflight[identifier] = task
        else:
            logger.debug("Joining in-flight resolution of %s", identifier)
        return await asyncio.shield(task)

    async def _run(self, identifier: str, source: Path, generation: int) -> dict[str, Any]:
        try:
            if self._timeout is None:
                document = await self._load_and_dereference(identifier, source)
            else:
                document = await asyncio.wait_for(
                    self._load_and_dereference(identifier, source), self._timeout
                )
        except asyncio.TimeoutError as exc:
            raise ResolutionTimeoutError(
                f"Resolving {identifier} exceeded {self._timeout:g}s"
            ) from exc
        finally:
            if self._inflight.get(identifier) is asyncio.current_task():
                del self._inflight[identifier]

        if identifier in self._sources and self._generations.get(identifier, 0) == generation:
            self._cache.put(identifier, document)
        else:
            logger.debug("Not caching %s: invalidated while resolving", identifier)
        return document

    def _forget(self, identifier: str) -> None:
        self._generations[identifier] = self._generations.get(identifier, 0) + 1
        self._inflight.pop(identifier, None)

    async def _load_and_dereference(self, identifier: str, source: Path) -> dict[str, Any]:
        if not source.is_file():
            raise NotFoundError(f"Specification file for {identifier} not found: {source}")
        logger.debug("Loading %s from %s", identifier, source)
        raw = await asyncio.to_thread(load_spec, source)
        base = os.path.normpath(os.path.abspath(source))
        document = await dereference(
            raw, base=base, fetcher=self._fetcher, on_cycle=self._on_cycle
        )
        logger.debug("Resolved %s", identifier)
        return document


def _retrieve_exception(task: asyncio.Task[Any]) -> None:
    # Every waiter may have been cancelled; mark the failure as seen so the
    # loop does not log "exception was never retrieved".
    if not task.cancelled():
        task.exception()
