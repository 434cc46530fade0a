"""
Keep/Recycle Rules

Scores a resolved book against the configured rules and explains the
outcome. Pure and deterministic: the current year can be injected.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from shelfkeep.identification.models import Book


@dataclass(frozen=True)
class Rules:
    """Rule configuration for a single evaluation."""

    max_age: int = 10
    recycle_genres: frozenset[str] = field(
        default_factory=lambda: frozenset({"Magazine", "Newspaper", "Technology"})
    )

    @classmethod
    def create(cls, max_age: int, recycle_genres: Iterable[str]) -> "Rules":
        """Build rules from any iterable of genres."""
        return cls(max_age=max_age, recycle_genres=frozenset(recycle_genres))


@dataclass(frozen=True)
class Decision:
    """Keep/recycle recommendation with the reasons behind it."""

    should_keep: bool
    reasons: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return "Keep" if self.should_keep else "Recycle"

    def to_dict(self) -> dict:
        return {
            "should_keep": self.should_keep,
            "label": self.label,
            "reasons": list(self.reasons),
        }


def book_age(book: Book, current_year: Optional[int] = None) -> Optional[int]:
    """Age of the book in years, or None when the year is unknown."""
    if book.publication_year is None:
        return None
    year = current_year if current_year is not None else date.today().year
    return year - book.publication_year


def evaluate(book: Book, rules: Rules, current_year: Optional[int] = None) -> Decision:
    """
    Decide whether to keep a book.

    The age check runs first, the genre check second; each violation adds
    one reason. A book without a publication year skips the age check.

    Args:
        book: Normalized book record
        rules: Rules to apply
        current_year: Reference year (defaults to this year)

    Returns:
        Decision with ordered reasons
    """
    reasons: list[str] = []

    age = book_age(book, current_year)
    if age is not None and age > rules.max_age:
        reasons.append(f"Book is {age} years old (older than {rules.max_age} years)")

    if book.genre in rules.recycle_genres:
        reasons.append(f'Genre "{book.genre}" is in recycle list')

    return Decision(should_keep=not reasons, reasons=tuple(reasons))
