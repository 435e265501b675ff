"""Specification parser -- load, dereference ``$ref`` pointers, and extract the catalog.

This sub-package turns a specification file (JSON or YAML, possibly split
across several files or URLs) into a dereferenced document and then into a
:class:`~speccatalog.models.Catalog`.

Typical usage::

    from speccatalog.parser import dereference, extract_catalog, load_spec

    raw = load_spec("openapi/quotes.yaml")
    document = await dereference(raw, base="openapi/quotes.yaml")
    catalog = extract_catalog(document)

Sub-modules:

* :mod:`~speccatalog.parser.loader` -- file I/O plus JSON/YAML parsing.
* :mod:`~speccatalog.parser.fetchers` -- strategies for loading documents
  named by external references (local files, HTTP).
* :mod:`~speccatalog.parser.resolver` -- ``$ref`` expansion with cycle
  detection.
* :mod:`~speccatalog.parser.extractor` -- walks ``paths`` and ``webhooks``
  into :class:`~speccatalog.models.Operation` and
  :class:`~speccatalog.models.Webhook` entries.
"""

from speccatalog.parser.extractor import extract_catalog, extract_info
from speccatalog.parser.loader import load_spec, parse_content
from speccatalog.parser.resolver import dereference, resolve_refs

__all__ = [
    "dereference",
    "extract_catalog",
    "extract_info",
    "load_spec",
    "parse_content",
    "resolve_refs",
]
