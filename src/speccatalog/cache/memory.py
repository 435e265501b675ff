"""In-memory cache of dereferenced documents keyed by identifier.

One :class:`DocumentCache` is created per
:class:`~speccatalog.documents.DocumentResolver` (or shared explicitly by
passing the same instance to several resolvers). Tests construct an isolated
instance each, so there is no module-level state.

Entries are replaced by whole-value assignment, so a reader sees either the
old document or the new one, never a partially updated tree.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional


class DocumentCache:
    """Map from identifier to dereferenced document."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, Any]] = {}

    def get(self, identifier: str) -> Optional[dict[str, Any]]:
        return self._entries.get(identifier)

    def put(self, identifier: str, document: dict[str, Any]) -> None:
        """Store (or atomically replace) the document for *identifier*."""
        self._entries[identifier] = document

    def pop(self, identifier: str) -> Optional[dict[str, Any]]:
        """Remove and return the entry for *identifier*, if any."""
        return self._entries.pop(identifier, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
