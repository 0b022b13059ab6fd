"""Generate tutorial pages, navigation indexes, and the JSON catalog.

:class:`DocsGenerator` renders the documentation tree from a scanned
registry; :mod:`fhevm_hub.docs.catalog` defines the ``catalog.json`` schema
and :func:`extract_pitfalls` pulls marked pitfall descriptions from tests.
"""

from .catalog import (
    Catalog,
    CatalogCategory,
    CatalogExample,
    CatalogStep,
    build_catalog,
    decode_catalog,
)
from .generator import DocsGenerator, clean_docs, read_manifest
from .navigation import StaticPage, chapter_map, static_pages, title_case
from .pitfalls import extract_pitfalls

__all__ = [
    "Catalog",
    "CatalogCategory",
    "CatalogExample",
    "CatalogStep",
    "DocsGenerator",
    "StaticPage",
    "build_catalog",
    "chapter_map",
    "clean_docs",
    "decode_catalog",
    "extract_pitfalls",
    "read_manifest",
    "static_pages",
    "title_case",
]
