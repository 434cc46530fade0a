"""
Open Library Catalog

Looks up books through the Open Library books API (jscmd=data).
"""

from typing import Any, Optional

import httpx
from loguru import logger

from shelfkeep.errors import CatalogFailure
from shelfkeep.identification.base import HttpCatalog
from shelfkeep.identification.fields import (
    first_name,
    joined_names,
    parse_year,
    scalar_text,
    text_or_unknown,
)
from shelfkeep.identification.models import Book, Found, NotFound, ResolutionOutcome


class OpenLibraryCatalog(HttpCatalog):
    """
    Client for Open Library API.

    Open Library is a free, open-source library catalog.
    Rate limits: Be respectful, no official limit but don't abuse.
    """

    name = "open_library"
    BASE_URL = "https://openlibrary.org"

    def __init__(
        self,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout=timeout, client=client)

    async def _fetch(self, isbn: str) -> ResolutionOutcome:
        bibkey = f"ISBN:{isbn}"
        params = {"bibkeys": bibkey, "format": "json", "jscmd": "data"}

        data = await self._get_json(f"{self.BASE_URL}/api/books", params=params)
        if not isinstance(data, dict):
            raise CatalogFailure(self.name, "expected a JSON object")

        record = data.get(bibkey)
        if not record:
            logger.info(f"Open Library has no record for ISBN {isbn}")
            return NotFound(isbn=isbn, source=self.name)

        return Found(book=self._parse_record(record, isbn), source=self.name)

    def _parse_record(self, record: Any, isbn: str) -> Book:
        """Parse a jscmd=data record."""
        if not isinstance(record, dict):
            raise CatalogFailure(self.name, "record is not an object")

        # description is sometimes a {"type", "value"} object; notes are the fallback
        description = scalar_text(record.get("description")) or scalar_text(record.get("notes"))

        return Book(
            isbn=isbn,
            title=text_or_unknown(record.get("title")),
            author=joined_names(record.get("authors")),
            publication_year=parse_year(record.get("publish_date")),
            genre=first_name(record.get("subjects")),
            publisher=first_name(record.get("publishers")),
            description=description,
        )
