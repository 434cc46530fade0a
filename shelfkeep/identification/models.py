"""
Book record and lookup outcomes.

Every catalog adapter maps its source-specific payload into `Book` and
reports the result as one of `Found`, `NotFound` or `Failed`.
"""

from dataclasses import dataclass
from typing import Optional, Union


UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Book:
    """
    Normalized book record.

    `isbn` is always the normalized lookup key, never the variant a
    catalog returned. Text fields fall back to "Unknown".
    """

    isbn: str
    title: str = UNKNOWN
    author: str = UNKNOWN
    publication_year: Optional[int] = None
    genre: str = UNKNOWN
    publisher: str = UNKNOWN
    description: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "isbn": self.isbn,
            "title": self.title,
            "author": self.author,
            "publication_year": self.publication_year,
            "genre": self.genre,
            "publisher": self.publisher,
            "description": self.description,
        }


@dataclass(frozen=True)
class Found:
    """Catalog returned a usable record."""

    book: Book
    source: str = UNKNOWN


@dataclass(frozen=True)
class NotFound:
    """Valid ISBN, but the catalog has no data for it."""

    isbn: str
    source: Optional[str] = None


@dataclass(frozen=True)
class Failed:
    """Transport error, bad status, timeout or malformed payload."""

    reason: str
    source: Optional[str] = None


ResolutionOutcome = Union[Found, NotFound, Failed]
