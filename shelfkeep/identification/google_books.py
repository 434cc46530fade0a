"""
Google Books Catalog

Looks up books through the Google Books volumes API.
"""

import os
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


class GoogleBooksCatalog(HttpCatalog):
    """
    Client for Google Books API.

    Rate limit: 1000 requests/day without API key.
    """

    name = "google_books"
    BASE_URL = "https://www.googleapis.com/books/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize client.

        Args:
            api_key: Optional API key. If not provided, tries GOOGLE_BOOKS_API_KEY env var.
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (mostly for tests)
        """
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key or os.getenv("GOOGLE_BOOKS_API_KEY")
        if not self.api_key:
            logger.debug("No Google Books API key provided. Rate limits will be lower.")

    async def _fetch(self, isbn: str) -> ResolutionOutcome:
        params = {"q": f"isbn:{isbn}"}
        if self.api_key:
            params["key"] = self.api_key

        data = await self._get_json(f"{self.BASE_URL}/volumes", params=params)
        if not isinstance(data, dict):
            raise CatalogFailure(self.name, "expected a JSON object")

        items = data.get("items") or []
        if not items:
            logger.info(f"Google Books has no volume for ISBN {isbn}")
            return NotFound(isbn=isbn, source=self.name)

        return Found(book=self._parse_volume(items[0], isbn), source=self.name)

    def _parse_volume(self, item: Any, isbn: str) -> Book:
        """Parse volume data."""
        if not isinstance(item, dict):
            raise CatalogFailure(self.name, "volume entry is not an object")

        info = item.get("volumeInfo")
        if not isinstance(info, dict):
            raise CatalogFailure(self.name, "volume has no volumeInfo")

        return Book(
            isbn=isbn,
            title=text_or_unknown(info.get("title")),
            author=joined_names(info.get("authors")),
            publication_year=parse_year(info.get("publishedDate")),
            genre=first_name(info.get("categories")),
            publisher=text_or_unknown(info.get("publisher")),
            description=scalar_text(info.get("description")),
        )
