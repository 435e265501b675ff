"""Canonical Pydantic models shared across all speccatalog modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- loaded from ``./speccatalog.json``, environment
variables, and CLI flags:
    :class:`RemoteCacheConfig` and :class:`CatalogSettings`.

**Catalog models** -- produced by the extractor and handed to the renderer:
    :class:`HTTPMethod`, :class:`OperationInfo`, :class:`Operation`,
    :class:`Webhook`, :class:`Catalog`, :class:`DocumentInfo`, and
    :class:`CatalogResult`.

Specification documents themselves stay plain ``dict`` trees. Only the parts
the catalog reads are lifted into typed models.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SkipValidation

from speccatalog.locator import DEFAULT_FALLBACK_IDENTIFIER

# --- Configuration ---


class RemoteCacheConfig(BaseModel):
    """Disk cache settings for externally referenced documents fetched over HTTP."""

    enabled: bool = Field(default=False, description="Cache fetched remote documents")
    ttl_seconds: int = Field(default=3600, description="Cache TTL in seconds")


class CatalogSettings(BaseModel):
    """Effective configuration for discovery and resolution.

    Built by :func:`~speccatalog.config.resolve_settings` from defaults, the
    project config file, environment variables, and CLI flags.

    Example::

        CatalogSettings(spec_dir="specs", resolve_timeout=5.0)
    """

    root_dir: Optional[Path] = Field(
        default=None,
        description="Directory identifiers are relative to (defaults to the working directory)",
    )
    spec_dir: str = Field(
        default="openapi", description="Directory scanned for specification files"
    )
    fallback_identifier: str = Field(
        default=DEFAULT_FALLBACK_IDENTIFIER,
        description="Identifier used when discovery finds no files",
    )
    resolve_timeout: Optional[float] = Field(
        default=30.0, description="Seconds allowed for one load-and-dereference pass"
    )
    on_cycle: Literal["marker", "error"] = Field(
        default="marker",
        description="Replace reference cycles with a marker, or fail",
    )
    allow_file_refs: bool = Field(
        default=True, description="Follow $refs into other local files"
    )
    allow_remote_refs: bool = Field(
        default=False, description="Follow $refs to http(s) URLs"
    )
    http_timeout: float = Field(
        default=10.0, description="Per-request timeout for remote $ref fetches"
    )
    remote_cache: RemoteCacheConfig = Field(default_factory=RemoteCacheConfig)

    def root(self) -> Path:
        """Return the effective root directory."""
        return self.root_dir if self.root_dir is not None else Path.cwd()

    def spec_path(self) -> Path:
        """Return the absolute directory scanned for specification files."""
        return self.root() / self.spec_dir


# --- Catalog ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods that produce catalog entries, in canonical order.

    Iterating the enum yields ``get, post, patch, delete, head, put``. Any
    other key under a path item (``parameters``, ``options``, ``x-*``) is
    never treated as an operation.
    """

    GET = "get"
    POST = "post"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    PUT = "put"


class OperationInfo(BaseModel):
    """The part of an *Operation Object* the catalog reads.

    Everything else in the source node is kept in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    tags: Optional[list[str]] = None


class Operation(BaseModel):
    """One path + HTTP method pair."""

    method: HTTPMethod
    path: str
    tags: Optional[list[str]] = None


class Webhook(BaseModel):
    """One webhook name + HTTP method pair."""

    method: HTTPMethod
    name: str
    tags: Optional[list[str]] = None


class Catalog(BaseModel):
    """Ordered index of the operations and webhooks in one document.

    Derived from a dereferenced document and never persisted.
    """

    operations: list[Operation] = Field(default_factory=list)
    webhooks: list[Webhook] = Field(default_factory=list)


class DocumentInfo(BaseModel):
    """Display metadata taken from the document's *Info Object*."""

    title: str = "Untitled API"
    version: str = "0.0.0"
    description: Optional[str] = None
    spec_version: Optional[str] = Field(
        default=None, description="Value of the top-level openapi/asyncapi/swagger field"
    )


class CatalogResult(BaseModel):
    """What the renderer receives for one identifier.

    ``document`` is the full dereferenced tree, needed for parameter, schema,
    and example detail that the catalog deliberately omits. It is the cached
    instance, passed through unvalidated: YAML documents may carry non-string
    keys (``on:`` loads as ``True``).
    """

    identifier: str
    info: DocumentInfo
    operations: list[Operation] = Field(default_factory=list)
    webhooks: list[Webhook] = Field(default_factory=list)
    document: SkipValidation[dict[Any, Any]] = Field(default_factory=dict)
