"""Resolve ``$ref`` JSON Reference pointers in specification documents.

OpenAPI and AsyncAPI documents use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}`` or
``{"$ref": "common.yaml#/components/schemas/Money"}``) to avoid repetition.
This module produces a new document tree in which every ``$ref`` has been
replaced with the object it points to.

Dereferencing happens in two phases:

1. :func:`collect_documents` (async) scans the document for references into
   other files or URLs and loads each of them once through a
   :class:`~speccatalog.parser.fetchers.RefFetcher`, transitively.
2. A synchronous depth-first walk builds the dereferenced tree from the
   loaded documents. :func:`dereference` runs it in a worker thread so the
   event loop keeps serving other requests and timeouts while it works.

Each reference target is expanded once per pass. Later references to the
same target reuse the expanded object, so a document that references a
schema from many places grows linearly rather than exponentially. Expansions
that contain a cycle marker are not reused, since the marker depends on the
path that reached them.

Circular references are detected with a stack of the references currently
being expanded on the active path (not the whole document). When one is
revisited, the walk either substitutes a terminal marker,
``{"x-circular-ref": "<ref>"}``, or raises
:class:`~speccatalog.exceptions.ReferenceError_`, depending on ``on_cycle``.

The public functions are :func:`dereference` (async, follows external
references) and :func:`resolve_refs` (sync, internal references only).
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Iterator, Literal, Optional
from urllib.parse import unquote, urljoin, urlparse

from speccatalog.exceptions import ReferenceError_
from speccatalog.parser.fetchers import RefFetcher, is_url

logger = logging.getLogger(__name__)

CIRCULAR_REF_KEY = "x-circular-ref"

CycleMode = Literal["marker", "error"]


async def dereference(
    spec: dict[str, Any],
    *,
    base: Optional[str] = None,
    fetcher: Optional[RefFetcher] = None,
    on_cycle: CycleMode = "marker",
) -> dict[str, Any]:
    """Return a copy of *spec* with every ``$ref`` expanded inline.

    Args:
        spec: The raw specification mapping. It is not modified.
        base: Absolute location (file path or URL) *spec* was loaded from.
            Relative external references are resolved against it.
        fetcher: Strategy used to load external documents. When ``None``,
            any reference outside *spec* raises
            :class:`~speccatalog.exceptions.ReferenceError_`.
        on_cycle: ``"marker"`` to replace a cyclic reference with
            ``{"x-circular-ref": ref}``, ``"error"`` to raise instead.

    Returns:
        A new dictionary containing no ``$ref`` nodes. Subtrees expanded
        from the same reference target are shared, not copied.

    Raises:
        ReferenceError_: If a target does not exist, an external document
            cannot be loaded, or a cycle is found with ``on_cycle="error"``.
        SpecParseError: If an external document is malformed.

    Example::

        raw = load_spec("openapi/quotes.yaml")
        doc = await dereference(raw, base="/srv/docs/openapi/quotes.yaml",
                                fetcher=LocalFileFetcher())
    """
    root_location = base or ""
    documents = await collect_documents(spec, root_location, fetcher)
    walker = _Dereferencer(documents, on_cycle)
    try:
        return await asyncio.to_thread(walker.run, spec, root_location)
    except asyncio.CancelledError:
        # The thread cannot be interrupted; make it stop at the next $ref.
        walker.abandon()
        raise


def resolve_refs(spec: dict[str, Any], on_cycle: CycleMode = "marker") -> dict[str, Any]:
    """Resolve internal ``#/...`` references synchronously.

    Any reference into another file or URL raises
    :class:`~speccatalog.exceptions.ReferenceError_`.

    Example::

        resolved = resolve_refs({"a": {"$ref": "#/b"}, "b": {"type": "string"}})
        # {"a": {"type": "string"}, "b": {"type": "string"}}
    """
    return _Dereferencer({"": spec}, on_cycle).run(spec, "")


async def collect_documents(
    spec: dict[str, Any],
    base: str,
    fetcher: Optional[RefFetcher],
) -> dict[str, dict[str, Any]]:
    """Load every document transitively referenced from *spec*.

    Documents referenced by the same wave are fetched concurrently. Each
    location is loaded at most once.

    Returns:
        A map from absolute location to parsed document; *spec* itself is
        stored under *base*.
    """
    documents: dict[str, dict[str, Any]] = {base: spec}
    frontier = [base]
    while frontier:
        wanted: list[str] = []
        for location in frontier:
            for ref in iter_refs(documents[location]):
                target, _ = split_ref(ref, location)
                if target not in documents and target not in wanted:
                    wanted.append(target)
        if not wanted:
            break
        if fetcher is None:
            raise ReferenceError_(
                f"External $ref not supported: {wanted[0]}. "
                "No fetcher is configured for references outside the document."
            )
        fetched = await asyncio.gather(*(fetcher.fetch(target) for target in wanted))
        documents.update(zip(wanted, fetched))
        frontier = wanted
    return documents


def iter_refs(obj: Any) -> Iterator[str]:
    """Yield every string ``$ref`` value in *obj*.

    Each container is visited once, so YAML aliases that make the tree
    self-referencing do not loop.
    """
    seen: set[int] = set()
    pending = [obj]
    while pending:
        node = pending.pop()
        if isinstance(node, dict):
            if id(node) in seen:
                continue
            seen.add(id(node))
            ref = node.get("$ref")
            if isinstance(ref, str):
                yield ref
            pending.extend(node.values())
        elif isinstance(node, list):
            if id(node) in seen:
                continue
            seen.add(id(node))
            pending.extend(node)


def split_ref(ref: str, location: str) -> tuple[str, str]:
    """Split *ref* into (absolute document location, JSON Pointer).

    Args:
        ref: The ``$ref`` string as written (``"#/a/b"``, ``"x.yaml#/a"``,
            ``"https://host/x.json"``).
        location: Location of the document containing *ref*.

    Returns:
        The target document location and the pointer (``""`` means the
        whole document).
    """
    if "#" in ref:
        doc_part, pointer = ref.split("#", 1)
    else:
        doc_part, pointer = ref, ""
    if not doc_part:
        return location, pointer
    return join_location(location, doc_part), pointer


def join_location(base: str, ref_path: str) -> str:
    """Resolve a reference's document part against the referring location."""
    if is_url(ref_path):
        return ref_path
    if ref_path.startswith("file://"):
        return os.path.normpath(unquote(urlparse(ref_path).path))
    if is_url(base):
        return urljoin(base, ref_path)
    if os.path.isabs(ref_path):
        return os.path.normpath(ref_path)
    base_dir = os.path.dirname(base) if base else os.getcwd()
    return os.path.normpath(os.path.join(base_dir, unquote(ref_path)))


def resolve_pointer(document: Any, pointer: str, ref: str) -> Any:
    """Navigate *document* along an RFC 6901 JSON Pointer taken from a URI fragment.

    Segments are percent-decoded, then ``~1`` becomes ``/`` and ``~0``
    becomes ``~``.

    Raises:
        ReferenceError_: If the pointer is malformed or any segment does not
            exist in the document.
    """
    if pointer == "":
        return document
    if not pointer.startswith("/"):
        raise ReferenceError_(
            f"Cannot resolve $ref '{ref}': unsupported fragment '#{pointer}'"
        )

    current: Any = document
    for raw_segment in pointer[1:].split("/"):
        segment = unquote(raw_segment).replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise ReferenceError_(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise ReferenceError_(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise ReferenceError_(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )

    return current


class _Dereferencer:
    """One synchronous expansion pass over already-loaded documents."""

    def __init__(self, documents: dict[str, dict[str, Any]], on_cycle: CycleMode) -> None:
        self._documents = documents
        self._on_cycle = on_cycle
        # Canonical "location#pointer" keys being expanded on the active path.
        self._ref_stack: set[str] = set()
        # Containers on the active path since the last ref; catches YAML
        # alias self-nesting.
        self._node_stack: set[int] = set()
        # Marker-free expansions by canonical key.
        self._expanded: dict[str, Any] = {}
        self._abandoned = False
        self.cycles = 0

    def abandon(self) -> None:
        self._abandoned = True

    def run(self, spec: dict[str, Any], location: str) -> dict[str, Any]:
        try:
            result = self._walk(spec, location)
        except RecursionError as exc:
            raise ReferenceError_(
                "Document nesting is too deep to dereference safely"
            ) from exc
        if self.cycles:
            logger.debug("Replaced %d circular reference(s) with markers", self.cycles)
        return result

    def _walk(self, obj: Any, location: str) -> Any:
        if isinstance(obj, dict):
            if "$ref" in obj:
                return self._expand(obj, location)
            with self._entering(obj):
                return {key: self._walk(value, location) for key, value in obj.items()}

        if isinstance(obj, list):
            with self._entering(obj):
                return [self._walk(item, location) for item in obj]

        return obj

    def _expand(self, node: dict[str, Any], location: str) -> Any:
        ref = node["$ref"]
        if not isinstance(ref, str):
            raise ReferenceError_(
                f"Invalid $ref value {ref!r}: expected a string"
            )

        if self._abandoned:
            raise ReferenceError_("Dereferencing abandoned")

        target_location, pointer = split_ref(ref, location)
        key = f"{target_location}#{pointer}"
        if key in self._ref_stack:
            return self._cycle(ref)

        if key in self._expanded:
            resolved = self._expanded[key]
        else:
            resolved = self._expand_target(ref, key, target_location, pointer)

        siblings = {k: v for k, v in node.items() if k != "$ref"}
        if siblings and isinstance(resolved, dict):
            with self._entering(node):
                overrides = {k: self._walk(v, location) for k, v in siblings.items()}
            resolved = {**resolved, **overrides}
        return resolved

    def _expand_target(self, ref: str, key: str, target_location: str, pointer: str) -> Any:
        document = self._documents.get(target_location)
        if document is None:
            raise ReferenceError_(
                f"External $ref not supported: {ref}. "
                "Only internal references (#/...) are handled here."
            )
        target = resolve_pointer(document, pointer, ref)

        # A ref target may legitimately be a container already on the path
        # (self-referencing schemas), so container tracking restarts per ref.
        outer_nodes = self._node_stack
        self._node_stack = set()
        self._ref_stack.add(key)
        cycles_before = self.cycles
        try:
            resolved = self._walk(target, target_location)
        finally:
            self._ref_stack.discard(key)
            self._node_stack = outer_nodes

        if self.cycles == cycles_before:
            self._expanded[key] = resolved
        return resolved

    def _cycle(self, ref: str) -> dict[str, Any]:
        if self._on_cycle == "error":
            raise ReferenceError_(f"Circular $ref detected: {ref}")
        self.cycles += 1
        return {CIRCULAR_REF_KEY: ref}

    def _entering(self, container: Any) -> "_ActiveNode":
        return _ActiveNode(self, container)


class _ActiveNode:
    """Context manager tracking a container on the active walk path."""

    def __init__(self, owner: _Dereferencer, container: Any) -> None:
        self._owner = owner
        self._id = id(container)

    def __enter__(self) -> None:
        if self._id in self._owner._node_stack:
            raise ReferenceError_(
                "Document contains a self-nested structure (recursive YAML alias)"
            )
        self._owner._node_stack.add(self._id)

    def __exit__(self, *exc_info: Any) -> None:
        self._owner._node_stack.discard(self._id)
