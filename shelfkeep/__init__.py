"""
ShelfKeep

Scan a book's ISBN, resolve it against public catalogs and get an
explained keep/recycle recommendation.
"""

from shelfkeep.app import BookScanner, LookupView, ViewState
from shelfkeep.config import Settings, get_settings
from shelfkeep.evaluation import Decision, Rules, evaluate
from shelfkeep.identification import Book, BookResolver, Failed, Found, NotFound
from shelfkeep.scanner import ScannerSession, ScannerState, normalize_isbn

__version__ = "0.1.0"

__all__ = [
    "BookScanner",
    "LookupView",
    "ViewState",
    "Settings",
    "get_settings",
    "Decision",
    "Rules",
    "evaluate",
    "Book",
    "BookResolver",
    "Found",
    "NotFound",
    "Failed",
    "ScannerSession",
    "ScannerState",
    "normalize_isbn",
]
