"""
Field extraction helpers shared by the catalog adapters.

Catalog payloads are inconsistent: an author may be a string or an object
with a name, a description may be a string or an object with a value, and
subject lists mix both. These helpers reduce such values to plain text.
"""

import re
from typing import Any, Iterable, Optional

from shelfkeep.identification.models import UNKNOWN


TEXT_KEYS = ("name", "value", "text", "title")

YEAR_PATTERN = re.compile(r"\b([0-9]{4})\b", re.ASCII)
LEADING_YEAR = re.compile(r"^[0-9]{4}")


def scalar_text(value: Any, keys: Iterable[str] = TEXT_KEYS) -> Optional[str]:
    """
    Reduce a catalog value to a single string.

    Strings are stripped, objects yield their first text-bearing key and
    lists yield their first usable element.

    Args:
        value: Raw value from a catalog payload
        keys: Object keys to try, in order

    Returns:
        Text, or None when nothing usable is present
    """
    if value is None:
        return None

    if isinstance(value, str):
        text = value.strip()
        return text or None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)

    if isinstance(value, dict):
        for key in keys:
            text = scalar_text(value.get(key), keys=())
            if text:
                return text
        return None

    if isinstance(value, (list, tuple)):
        for item in value:
            text = scalar_text(item, keys)
            if text:
                return text
        return None

    return None


def text_or_unknown(value: Any) -> str:
    return scalar_text(value) or UNKNOWN


def names(values: Any) -> list[str]:
    """Every usable name from a string/object list (or a single value)."""
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        values = [values]

    result = []
    for item in values:
        text = scalar_text(item)
        if text:
            result.append(text)
    return result


def joined_names(values: Any) -> str:
    """Comma-separated names, or "Unknown" when there are none."""
    found = names(values)
    return ", ".join(found) if found else UNKNOWN


def first_name(values: Any) -> str:
    found = names(values)
    return found[0] if found else UNKNOWN


def parse_year(value: Any) -> Optional[int]:
    """
    Extract a four digit year.

    Handles "2006", "2006-05-01" and free text such as "May 2006".
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value if value > 0 else None

    text = scalar_text(value)
    if not text:
        return None

    if LEADING_YEAR.match(text):
        return int(text[:4])

    match = YEAR_PATTERN.search(text)
    if match:
        return int(match.group(1))
    return None
