"""
Book Resolver

Tries catalog adapters in priority order and returns the first hit.
"""

import asyncio
from typing import TYPE_CHECKING, Optional, Sequence

from loguru import logger

from shelfkeep.identification.base import CatalogAdapter
from shelfkeep.identification.google_books import GoogleBooksCatalog
from shelfkeep.identification.models import Failed, Found, NotFound, ResolutionOutcome
from shelfkeep.identification.open_library import OpenLibraryCatalog
from shelfkeep.identification.static_catalog import StaticCatalog

if TYPE_CHECKING:
    from shelfkeep.config import Settings


class BookResolver:
    """
    Resolves an ISBN against an ordered list of catalogs.

    The first `Found` short-circuits the chain. When every catalog reports
    `NotFound` the result is `NotFound`; when nothing was found and at least
    one catalog failed, the result is `Failed`. Exceptions raised by an
    adapter (as opposed to `Failed` outcomes) propagate to the caller.

    Usage:
        resolver = BookResolver([GoogleBooksCatalog(), OpenLibraryCatalog()])
        outcome = await resolver.resolve("9780307474278")
    """

    def __init__(self, adapters: Sequence[CatalogAdapter], timeout: Optional[float] = 10.0):
        """
        Initialize resolver.

        Args:
            adapters: Catalogs in priority order (primary first)
            timeout: Per-adapter timeout in seconds; None disables it
        """
        if not adapters:
            raise ValueError("BookResolver needs at least one catalog adapter")

        self.adapters = list(adapters)
        self.timeout = timeout

    async def resolve(self, isbn: str) -> ResolutionOutcome:
        """
        Resolve a normalized ISBN.

        Args:
            isbn: 10 or 13 digit ISBN

        Returns:
            Found from the first catalog that has the book, else NotFound
            or Failed
        """
        failures: list[Failed] = []

        for adapter in self.adapters:
            outcome = await self._lookup(adapter, isbn)

            if isinstance(outcome, Found):
                logger.info(f"Resolved {isbn} via {adapter.name}: '{outcome.book.title}'")
                return outcome

            if isinstance(outcome, Failed):
                logger.warning(f"{adapter.name} failed for {isbn}: {outcome.reason}; trying next catalog")
                failures.append(outcome)
            else:
                logger.debug(f"{adapter.name} has no data for {isbn}")

        if failures:
            reason = "; ".join(f"{f.source}: {f.reason}" for f in failures)
            return Failed(reason=reason, source=failures[-1].source)

        logger.info(f"No catalog has data for {isbn}")
        return NotFound(isbn=isbn)

    async def _lookup(self, adapter: CatalogAdapter, isbn: str) -> ResolutionOutcome:
        if self.timeout is None:
            return await adapter.lookup(isbn)

        try:
            return await asyncio.wait_for(adapter.lookup(isbn), timeout=self.timeout)
        except asyncio.TimeoutError:
            return Failed(reason="timeout", source=adapter.name)

    async def close(self) -> None:
        """Close all adapters."""
        for adapter in self.adapters:
            await adapter.close()


def create_adapter(name: str, settings: "Settings") -> CatalogAdapter:
    """Create a catalog adapter by its configured name."""
    if name == GoogleBooksCatalog.name:
        return GoogleBooksCatalog(
            api_key=settings.google_books_api_key,
            timeout=settings.lookup_timeout_s,
        )
    if name == OpenLibraryCatalog.name:
        return OpenLibraryCatalog(timeout=settings.lookup_timeout_s)
    if name == StaticCatalog.name:
        return StaticCatalog()
    raise ValueError(f"Unknown catalog: {name}")


def build_resolver(settings: "Settings") -> BookResolver:
    """Build a resolver with catalogs in the configured order."""
    adapters = [create_adapter(name, settings) for name in settings.catalogs]
    logger.info(f"Catalog order: {', '.join(a.name for a in adapters)}")
    return BookResolver(adapters, timeout=settings.lookup_timeout_s)
