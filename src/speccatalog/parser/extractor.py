"""Build the operation and webhook catalog from a dereferenced document.

This module walks the ``paths`` and ``webhooks`` tables of a fully
``$ref``-resolved specification and produces a
:class:`~speccatalog.models.Catalog`: an ordered index of
``(method, path, tags)`` and ``(method, name, tags)`` entries that the
renderer uses for navigation. Full operation detail stays in the document.

Extraction never raises. A missing, ``null``, or non-mapping ``paths`` or
``webhooks`` section is treated as empty, and malformed entries inside them
are skipped, so one cosmetic defect in a large document does not hide the
rest of its catalog.

Ordering is fixed: document order of the table, then the canonical method
order of :class:`~speccatalog.models.HTTPMethod` within each entry,
whatever order the methods were written in.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from speccatalog.models import (
    Catalog,
    DocumentInfo,
    HTTPMethod,
    Operation,
    OperationInfo,
    Webhook,
)

# Canonical iteration order: get, post, patch, delete, head, put
_CANONICAL_METHODS: tuple[HTTPMethod, ...] = tuple(HTTPMethod)


def extract_catalog(document: Mapping[str, Any]) -> Catalog:
    """Extract the :class:`~speccatalog.models.Catalog` of a dereferenced document.

    Args:
        document: The dereferenced specification, as returned by
            :meth:`~speccatalog.documents.DocumentResolver.resolve`.

    Returns:
        The operations and webhooks, in document order then canonical
        method order.

    Example::

        catalog = extract_catalog({"paths": {"/quotes": {"post": {"tags": ["quotes"]}}}})
        # catalog.operations == [Operation(method="post", path="/quotes", tags=["quotes"])]
        # catalog.webhooks == []
    """
    operations = [
        Operation(method=method, path=path, tags=info.tags)
        for path, method, info in _iter_entries(document.get("paths"))
    ]
    webhooks = [
        Webhook(method=method, name=name, tags=info.tags)
        for name, method, info in _iter_entries(document.get("webhooks"))
    ]
    return Catalog(operations=operations, webhooks=webhooks)


def extract_info(document: Mapping[str, Any]) -> DocumentInfo:
    """Extract display metadata from the document's ``info`` object.

    Missing or malformed fields fall back to the
    :class:`~speccatalog.models.DocumentInfo` defaults.
    """
    info = document.get("info")
    if not isinstance(info, dict):
        info = {}

    spec_version = None
    for field in ("openapi", "asyncapi", "swagger"):
        if document.get(field) is not None:
            spec_version = str(document[field])
            break

    description = info.get("description")
    return DocumentInfo(
        title=str(info.get("title") or "Untitled API"),
        version=str(info.get("version") or "0.0.0"),
        description=description if isinstance(description, str) else None,
        spec_version=spec_version,
    )


def method_map(entry: Any) -> dict[HTTPMethod, OperationInfo]:
    """Lift one path item (or webhook entry) into a typed method map.

    Only the six canonical method keys are read. A method whose value is
    absent, ``None``, ``False``, ``0``, or ``""`` is treated as not
    supported; any other value, including an empty mapping, is an operation.

    Returns:
        A dict keyed in canonical method order. Empty for non-mapping input.
    """
    if not isinstance(entry, dict):
        return {}
    result: dict[HTTPMethod, OperationInfo] = {}
    for method in _CANONICAL_METHODS:
        value = entry.get(method.value)
        if not _is_present(value):
            continue
        result[method] = _operation_info(value)
    return result


def _iter_entries(table: Any) -> Iterator[tuple[str, HTTPMethod, OperationInfo]]:
    if not isinstance(table, dict):
        return
    for key, entry in table.items():
        for method, info in method_map(entry).items():
            yield str(key), method, info


def _is_present(value: Any) -> bool:
    # Containers count as present even when empty: ``post: {}`` declares an
    # operation with no further detail.
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


def _operation_info(value: Any) -> OperationInfo:
    if not isinstance(value, dict):
        return OperationInfo()
    data = {k: v for k, v in value.items() if isinstance(k, str)}
    data["tags"] = _tags(value.get("tags"))
    return OperationInfo.model_validate(data)


def _tags(raw: Any) -> list[str] | None:
    if not isinstance(raw, list):
        return None
    return [tag for tag in raw if isinstance(tag, str)]
