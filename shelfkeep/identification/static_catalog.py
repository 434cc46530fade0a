"""
Static in-memory catalog.

Serves a fixed set of records without network access. Useful as an
offline last resort and for demos.
"""

from typing import Mapping, Optional

from shelfkeep.identification.base import CatalogAdapter
from shelfkeep.identification.models import Book, Found, NotFound, ResolutionOutcome
from shelfkeep.scanner.isbn import normalize_isbn


SAMPLE_BOOKS = {
    "9783161484100": {
        "title": "Modern Web Development",
        "author": "Jane Smith",
        "publication_year": 2020,
        "genre": "Technology",
        "publisher": "Tech Press",
    },
    "9780307474278": {
        "title": "The Road",
        "author": "Cormac McCarthy",
        "publication_year": 2006,
        "genre": "Fiction",
        "publisher": "Vintage",
    },
}


class StaticCatalog(CatalogAdapter):
    """Catalog backed by a dictionary of records keyed by ISBN."""

    name = "static"

    def __init__(self, records: Optional[Mapping[str, dict]] = None):
        source = SAMPLE_BOOKS if records is None else records
        # keys may be hyphenated; store them normalized
        self._records: dict[str, dict] = {}
        for key, record in source.items():
            isbn = normalize_isbn(key)
            if isbn:
                self._records[isbn] = dict(record)

    def __len__(self) -> int:
        return len(self._records)

    async def lookup(self, isbn: str) -> ResolutionOutcome:
        record = self._records.get(isbn)
        if record is None:
            return NotFound(isbn=isbn, source=self.name)

        fields = {k: v for k, v in record.items() if k != "isbn"}
        return Found(book=Book(isbn=isbn, **fields), source=self.name)
