"""speccatalog -- Discover API specifications and catalog their operations.

This package finds OpenAPI/AsyncAPI documents in a directory, dereferences
them into self-contained trees, and indexes the operations and webhooks they
describe so a documentation site can render navigation and detail pages.

Typical usage::

    from speccatalog.catalog import CatalogService
    from speccatalog.config import resolve_settings

    async with CatalogService.from_settings(resolve_settings()) as service:
        result = await service.get_catalog(service.default_identifier)

Modules:
    locator: Specification discovery and the fallback identifier.
    documents: Cached, single-flight identifier -> document resolution.
    catalog: The renderer-facing ``get_catalog`` contract.
    parser: Loading, ``$ref`` dereferencing, and catalog extraction.
    models: Pydantic models shared across the package.
    config: XDG paths and settings precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"
