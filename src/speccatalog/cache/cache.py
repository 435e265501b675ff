"""Disk-based caching of remote documents fetched for external ``$ref`` targets.

Uses :mod:`diskcache` to persist parsed documents on the filesystem with a
configurable time-to-live (TTL). Only successfully parsed mapping documents
are stored; fetch and parse failures are never cached.

Cache keys are SHA-256 hashes of the absolute URL, so a document referenced
from several specifications is fetched once per TTL window.

See Also:
    :class:`~speccatalog.models.RemoteCacheConfig` -- the Pydantic model that
    controls ``enabled`` and ``ttl_seconds``.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Optional

import diskcache

from speccatalog.models import RemoteCacheConfig


class RemoteDocumentCache:
    """Disk-backed cache for remote specification documents.

    Args:
        cache_dir: Root directory for the cache. A ``documents/``
            subdirectory is created inside it.
        config: Cache configuration (``enabled`` flag and ``ttl_seconds``).

    Example::

        from speccatalog.cache import RemoteDocumentCache
        from speccatalog.models import RemoteCacheConfig

        cache = RemoteDocumentCache("/tmp/refs", RemoteCacheConfig(enabled=True))
        cache.set("https://example.com/common.yaml", {"components": {}})
        hit = cache.get("https://example.com/common.yaml")
    """

    def __init__(self, cache_dir: str | Path, config: RemoteCacheConfig) -> None:
        self._config = config
        self._cache: Optional[diskcache.Cache] = None
        self._cache_dir = Path(cache_dir)
        if config.enabled:
            self._cache = diskcache.Cache(str(self._cache_dir / "documents"))

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def get(self, url: str) -> Optional[dict[str, Any]]:
        """Look up a cached document.

        Returns:
            The parsed document on a hit, or ``None`` on a miss or when
            caching is disabled.
        """
        if self._cache is None:
            return None
        return self._cache.get(self._make_key(url))

    def set(self, url: str, document: dict[str, Any]) -> None:
        """Store a parsed document. Silently ignored when caching is disabled."""
        if self._cache is None:
            return
        self._cache.set(self._make_key(url), document, expire=self._config.ttl_seconds)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()

    def _make_key(self, url: str) -> str:
        return hashlib.sha256(url.encode()).hexdigest()
