"""
Book Identification Module

Resolves ISBNs against external catalogs and normalizes their records.
"""

from shelfkeep.identification.models import (
    Book,
    Found,
    NotFound,
    Failed,
    ResolutionOutcome,
    UNKNOWN,
)
from shelfkeep.identification.base import CatalogAdapter, HttpCatalog
from shelfkeep.identification.google_books import GoogleBooksCatalog
from shelfkeep.identification.open_library import OpenLibraryCatalog
from shelfkeep.identification.static_catalog import StaticCatalog
from shelfkeep.identification.resolver import BookResolver, build_resolver

__all__ = [
    # Records
    "Book",
    "Found",
    "NotFound",
    "Failed",
    "ResolutionOutcome",
    "UNKNOWN",
    # Catalogs
    "CatalogAdapter",
    "HttpCatalog",
    "GoogleBooksCatalog",
    "OpenLibraryCatalog",
    "StaticCatalog",
    # Resolution
    "BookResolver",
    "build_resolver",
]
