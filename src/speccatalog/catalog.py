"""The interface the documentation renderer calls.

:class:`CatalogService` composes :class:`~speccatalog.documents.DocumentResolver`
with :func:`~speccatalog.parser.extractor.extract_catalog`. It adds no
failure modes of its own: resolver errors propagate unchanged, and
extraction never fails.

The result carries the full dereferenced document next to the catalog,
because page detail (parameters, schemas, examples) is rendered from the
document while the catalog only indexes it.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from speccatalog.cache import DocumentCache
from speccatalog.documents import DocumentResolver
from speccatalog.locator import select_default
from speccatalog.models import CatalogResult, CatalogSettings
from speccatalog.parser.extractor import extract_catalog, extract_info


class CatalogService:
    """Identifier -> catalog, on demand.

    Args:
        resolver: The resolver documents are loaded through. Its cache is
            the service's cache.

    Example::

        service = CatalogService.from_settings(resolve_settings())
        result = await service.get_catalog(service.default_identifier)
        for op in result.operations:
            print(op.method.value.upper(), op.path)
    """

    def __init__(self, resolver: DocumentResolver) -> None:
        self._resolver = resolver

    @classmethod
    def from_settings(
        cls,
        settings: CatalogSettings,
        cache: Optional[DocumentCache] = None,
    ) -> CatalogService:
        return cls(DocumentResolver.from_settings(settings, cache=cache))

    async def __aenter__(self) -> CatalogService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self._resolver.aclose()

    @property
    def resolver(self) -> DocumentResolver:
        return self._resolver

    @property
    def identifiers(self) -> list[str]:
        return self._resolver.identifiers

    @property
    def default_identifier(self) -> str:
        """The first known identifier: the first discovered file, or the fallback."""
        return select_default(self._resolver.identifiers)

    async def get_catalog(self, identifier: str) -> CatalogResult:
        """Resolve *identifier* and index its operations and webhooks.

        Raises:
            NotFoundError: If *identifier* is unknown.
            SpecParseError: If the document is malformed.
            ReferenceError_: If a reference cannot be resolved.
            ResolutionTimeoutError: If resolution exceeds its time bound.
        """
        document = await self._resolver.resolve(identifier)
        catalog = extract_catalog(document)
        return CatalogResult(
            identifier=identifier,
            info=extract_info(document),
            operations=catalog.operations,
            webhooks=catalog.webhooks,
            document=document,
        )

    async def get_catalogs(self) -> list[CatalogResult]:
        """Resolve every known identifier concurrently, in identifier order.

        The first failure propagates; documents that did resolve stay cached.
        """
        return list(
            await asyncio.gather(*(self.get_catalog(i) for i in self.identifiers))
        )
