"""
Catalog adapter base classes.

An adapter answers one question: given a normalized ISBN, what does this
catalog know? Expected misses are `NotFound`; transport problems and
unusable payloads are `Failed`. Anything else is a bug and propagates.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from loguru import logger

from shelfkeep.errors import CatalogFailure
from shelfkeep.identification.models import Failed, ResolutionOutcome


class CatalogAdapter(ABC):
    """Lookup-by-ISBN against one bibliographic source."""

    name: str = "catalog"

    @abstractmethod
    async def lookup(self, isbn: str) -> ResolutionOutcome:
        """
        Look up a normalized ISBN.

        Args:
            isbn: 10 or 13 digit ISBN

        Returns:
            Found, NotFound or Failed
        """

    async def close(self) -> None:
        """Release any held resources."""


class HttpCatalog(CatalogAdapter):
    """
    Base for catalogs reached over HTTP.

    Subclasses implement `_fetch`; this class converts transport and
    payload problems into `Failed` outcomes.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def lookup(self, isbn: str) -> ResolutionOutcome:
        try:
            return await self._fetch(isbn)
        except httpx.TimeoutException as e:
            logger.warning(f"{self.name} lookup for {isbn} timed out: {e}")
            return Failed(reason="timeout", source=self.name)
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} lookup for {isbn} failed: {e}")
            return Failed(reason=f"transport error: {e}", source=self.name)
        except CatalogFailure as e:
            logger.warning(f"{self.name} returned an unusable response for {isbn}: {e.detail}")
            return Failed(reason=e.detail or e.message, source=self.name)

    @abstractmethod
    async def _fetch(self, isbn: str) -> ResolutionOutcome:
        """Query the catalog; may raise httpx errors or CatalogFailure."""

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        """GET a URL and decode its JSON body."""
        client = await self._get_client()
        response = await client.get(url, params=params)

        if response.status_code != 200:
            raise CatalogFailure(self.name, f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise CatalogFailure(self.name, f"malformed JSON: {e}") from e

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
