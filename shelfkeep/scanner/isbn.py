"""
ISBN normalization.

The single gate between noisy decoder output (or typed input) and the
catalogs: nothing that fails here is ever looked up.
"""

import re
from typing import Optional

from shelfkeep.errors import InvalidISBNError


SEPARATORS = re.compile(r"[-\s]")
ISBN_PATTERN = re.compile(r"^(?:[0-9]{10}|[0-9]{13})$")


def normalize_isbn(text: Optional[str]) -> Optional[str]:
    """
    Clean decoded or typed text into an ISBN.

    Hyphens and whitespace are removed; the rest must be exactly 10 or 13
    digits.

    Args:
        text: Raw barcode text or user input

    Returns:
        Digits-only ISBN, or None when the text is not an ISBN
    """
    if not text:
        return None

    clean = SEPARATORS.sub("", text)
    if ISBN_PATTERN.match(clean):
        return clean
    return None


def is_valid_isbn(text: Optional[str]) -> bool:
    return normalize_isbn(text) is not None


def require_isbn(text: Optional[str]) -> str:
    """Normalize text or raise InvalidISBNError."""
    isbn = normalize_isbn(text)
    if isbn is None:
        raise InvalidISBNError(text or "")
    return isbn
