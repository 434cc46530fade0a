"""
Pytest configuration and fixtures for ShelfKeep tests.
"""

import asyncio
import sys
import threading
import time
from collections import deque
from pathlib import Path
from typing import Callable, Optional

import httpx
import numpy as np
import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shelfkeep.config import Settings
from shelfkeep.errors import CameraAccessError, SymbolNotFound
from shelfkeep.scanner.session import ScannerSession


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings() -> Settings:
    """Return settings configured for testing."""
    return Settings(
        google_books_api_key=None,
        catalog_order="google_books,open_library",
        lookup_timeout_s=1.0,
        decode_interval_s=0.001,
        max_age=10,
        recycle_genres="Magazine,Newspaper,Technology",
        log_level="DEBUG",
    )


@pytest.fixture
def test_settings() -> Settings:
    return get_test_settings()


# =============================================================================
# Camera / Decoder Fakes
# =============================================================================

class FakeCamera:
    """Camera double that records its lifecycle."""

    def __init__(self, fail_with: Optional[Exception] = None, open_delay: float = 0.0,
                 read_delay: float = 0.0):
        self.fail_with = fail_with
        self.open_delay = open_delay
        self.read_delay = read_delay
        self.opened = False
        self.opening = False
        self.reading = False
        self.released_during_read = False
        self.open_calls = 0
        self.release_calls = 0

    def open(self) -> None:
        self.open_calls += 1
        self.opening = True
        try:
            time.sleep(self.open_delay)
            if self.fail_with is not None:
                raise self.fail_with
            self.opened = True
        finally:
            self.opening = False

    def read(self):
        self.reading = True
        try:
            time.sleep(self.read_delay)
            if not self.opened:
                return None
            return np.zeros((480, 640, 3), dtype=np.uint8)
        finally:
            self.reading = False

    def release(self) -> None:
        if self.reading:
            self.released_during_read = True
        self.release_calls += 1
        self.opened = False


class FakeCameraFactory:
    """Hands out FakeCameras and tracks how many are held open."""

    def __init__(self):
        self.cameras: list[FakeCamera] = []
        self.failures: deque = deque()
        self.open_delay = 0.0
        self.read_delay = 0.0

    def fail_next(self, error: Exception) -> None:
        self.failures.append(error)

    def __call__(self) -> FakeCamera:
        error = self.failures.popleft() if self.failures else None
        camera = FakeCamera(fail_with=error, open_delay=self.open_delay, read_delay=self.read_delay)
        self.cameras.append(camera)
        return camera

    @property
    def active(self) -> int:
        return sum(1 for c in self.cameras if c.opened)


class FakeDecoder:
    """Decoder double fed with a script of texts and exceptions."""

    def __init__(self):
        self.script: deque = deque()
        self.reset_calls = 0
        self.reset_error: Optional[Exception] = None
        self._lock = threading.Lock()

    def feed(self, *items) -> None:
        with self._lock:
            self.script.extend(items)

    def decode(self, frame) -> str:
        with self._lock:
            item = self.script.popleft() if self.script else None
        if item is None:
            raise SymbolNotFound()
        if isinstance(item, Exception):
            raise item
        return item

    def reset(self) -> None:
        self.reset_calls += 1
        if self.reset_error is not None:
            raise self.reset_error


@pytest.fixture
def camera_factory() -> FakeCameraFactory:
    return FakeCameraFactory()


@pytest.fixture
def decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest_asyncio.fixture
async def session(camera_factory, decoder):
    """Scanner session on fake hardware, stopped after the test."""
    scanner = ScannerSession(camera_factory, decoder, decode_interval=0.001)
    yield scanner
    scanner.stop()
    # let the cancelled decode loop unwind before the event loop closes
    await asyncio.sleep(0.01)


@pytest.fixture
def camera_denied() -> CameraAccessError:
    return CameraAccessError("Permission denied", detail="NotAllowedError")


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until predicate() holds; fail the test on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


# =============================================================================
# Catalog Payloads
# =============================================================================

@pytest.fixture
def google_books_payload() -> dict:
    """Google Books volumes response for The Road."""
    return {
        "kind": "books#volumes",
        "totalItems": 1,
        "items": [
            {
                "id": "x1dJPgAACAAJ",
                "volumeInfo": {
                    "title": "The Road",
                    "authors": ["Cormac McCarthy"],
                    "publisher": "Vintage",
                    "publishedDate": "2006-09-26",
                    "description": "A father and his son walk alone through burned America.",
                    "industryIdentifiers": [
                        {"type": "ISBN_13", "identifier": "9780307474278"},
                        {"type": "ISBN_10", "identifier": "0307474275"},
                    ],
                    "categories": ["Fiction"],
                },
            }
        ],
    }


@pytest.fixture
def open_library_payload() -> dict:
    """Open Library jscmd=data response for The Road."""
    return {
        "ISBN:9780307474278": {
            "url": "https://openlibrary.org/books/OL24275231M/The_Road",
            "title": "The Road",
            "authors": [
                {"url": "https://openlibrary.org/authors/OL24638A", "name": "Cormac McCarthy"},
            ],
            "publishers": [{"name": "Vintage International"}],
            "publish_date": "May 2006",
            "subjects": [
                {"name": "Fiction", "url": "https://openlibrary.org/subjects/fiction"},
                "Father and son",
            ],
            "description": {"type": "/type/text", "value": "Post-apocalyptic novel."},
        }
    }


def json_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
