"""Caches used while resolving specification documents.

This package provides two caches with different lifetimes:

* :class:`DocumentCache` -- the process-lifetime, in-memory map from
  identifier to dereferenced document owned by
  :class:`~speccatalog.documents.DocumentResolver`. Entries never expire;
  they change only through explicit reload or invalidation.
* :class:`RemoteDocumentCache` -- an optional :mod:`diskcache` store of raw
  documents fetched over HTTP for external ``$ref`` targets, controlled by
  :class:`~speccatalog.models.RemoteCacheConfig`.
"""

from speccatalog.cache.cache import RemoteDocumentCache
from speccatalog.cache.memory import DocumentCache

__all__ = ["DocumentCache", "RemoteDocumentCache"]
