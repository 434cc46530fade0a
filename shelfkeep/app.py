"""
Book Scanner controller.

The surface a UI drives: start/stop the camera, look up an ISBN (scanned
or typed), evaluate the result and render one of a fixed set of view
states. "Not found", "error" and "camera unavailable" are always distinct.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from shelfkeep.config import Settings, get_settings
from shelfkeep.errors import CameraAccessError, LookupInProgressError
from shelfkeep.evaluation.rules import Decision, Rules, evaluate
from shelfkeep.identification.models import Book, Failed, Found, NotFound, ResolutionOutcome
from shelfkeep.identification.resolver import BookResolver, build_resolver
from shelfkeep.scanner.camera import OpenCVCamera, ResolutionConstraints
from shelfkeep.scanner.decoder import ZXingDecoder
from shelfkeep.scanner.isbn import require_isbn
from shelfkeep.scanner.session import ScannerSession


class ViewState(Enum):
    """What the UI should currently show."""
    IDLE = "idle"
    LOADING = "loading"
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"
    CAMERA_UNAVAILABLE = "camera_unavailable"


@dataclass(frozen=True)
class LookupView:
    """Renderable result slot."""

    state: ViewState
    isbn: Optional[str] = None
    book: Optional[Book] = None
    decision: Optional[Decision] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "isbn": self.isbn,
            "book": self.book.to_dict() if self.book else None,
            "decision": self.decision.to_dict() if self.decision else None,
            "message": self.message,
        }


ViewCallback = Callable[[LookupView], None]
StatusCallback = Callable[[str], None]


def create_session(settings: Settings) -> ScannerSession:
    """Scanner session backed by OpenCV and zxing-cpp."""
    constraints = ResolutionConstraints(
        ideal_width=settings.frame_width,
        ideal_height=settings.frame_height,
    )
    return ScannerSession(
        camera_factory=lambda: OpenCVCamera(settings.camera_index, constraints),
        decoder=ZXingDecoder(),
        decode_interval=settings.decode_interval_s,
    )


class BookScanner:
    """
    Scan-lookup-evaluate controller.

    At most one lookup runs at a time. Each lookup carries a sequence
    number; a result whose number is no longer current (because `reset()`
    ran meanwhile) is returned to its caller but never published.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        resolver: Optional[BookResolver] = None,
        session: Optional[ScannerSession] = None,
        on_view: Optional[ViewCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        """
        Initialize controller.

        Args:
            settings: Application settings (defaults to environment)
            resolver: Book resolver (defaults to configured catalogs)
            session: Scanner session (defaults to OpenCV camera)
            on_view: Called whenever the view changes
            on_status: Called with scanner diagnostics
        """
        self.settings = settings or get_settings()
        self.resolver = resolver or build_resolver(self.settings)
        self.session = session or create_session(self.settings)
        self.rules = self.settings.rules()

        self.on_view = on_view
        self.on_status = on_status

        self.view = LookupView(ViewState.IDLE)
        self.last_status: Optional[str] = None
        self.lookup_task: Optional[asyncio.Task] = None

        self._busy = False
        self._pending_isbn: Optional[str] = None
        self._request_seq = 0

    @property
    def is_busy(self) -> bool:
        return self._busy

    # -------------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------------

    async def start_scanning(self) -> bool:
        """
        Start the camera.

        Returns:
            True when streaming; False when the camera is unavailable (the
            view then switches to CAMERA_UNAVAILABLE)
        """
        try:
            await self.session.start(self._on_detect, self._emit_status)
        except CameraAccessError as e:
            self._publish(LookupView(
                ViewState.CAMERA_UNAVAILABLE,
                message=f"Error accessing camera: {e.message}. Please check permissions or use manual input.",
            ))
            return False
        return True

    def stop_scanning(self) -> None:
        self.session.stop()

    async def resume_scanning(self) -> bool:
        """Clear the current result and scan again."""
        self._request_seq += 1
        self._publish(LookupView(ViewState.IDLE))
        return await self.start_scanning()

    def _on_detect(self, isbn: str) -> bool:
        if self._busy:
            # refused, so the session offers the code again once we are free
            logger.debug(f"Ignoring {isbn}; lookup for {self._pending_isbn} still pending")
            return False

        # pause the camera while the catalogs are queried
        self.session.stop()
        self.lookup_task = asyncio.create_task(self._lookup_detected(isbn))
        return True

    async def _lookup_detected(self, isbn: str) -> None:
        try:
            await self.lookup_isbn(isbn)
        except LookupInProgressError:
            logger.debug(f"Dropped detected ISBN {isbn}; another lookup started first")
        except Exception as e:
            # already published as an ERROR view
            logger.exception(f"Lookup for detected ISBN {isbn} failed: {e}")

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    async def lookup_isbn(self, raw: str) -> ResolutionOutcome:
        """
        Resolve an ISBN and publish the resulting view.

        Args:
            raw: Scanned or typed ISBN; hyphens and spaces are allowed

        Returns:
            Found, NotFound or Failed

        Raises:
            InvalidISBNError: Input is not an ISBN (no catalog is contacted)
            LookupInProgressError: Another lookup is still pending
        """
        isbn = require_isbn(raw)
        if self._busy:
            raise LookupInProgressError(self._pending_isbn)

        self._busy = True
        self._pending_isbn = isbn
        self._request_seq += 1
        seq = self._request_seq

        self._publish(LookupView(ViewState.LOADING, isbn=isbn, message=f"Fetching book data for ISBN: {isbn}"))

        try:
            outcome = await self.resolver.resolve(isbn)
        except Exception as e:
            if seq == self._request_seq:
                self._publish(LookupView(
                    ViewState.ERROR,
                    isbn=isbn,
                    message=f"Error fetching book details: {e}",
                ))
            raise
        finally:
            self._busy = False
            self._pending_isbn = None

        if seq != self._request_seq:
            logger.info(f"Discarding superseded result for {isbn}")
            return outcome

        self._publish(self._view_for(isbn, outcome))
        return outcome

    def evaluate(self, book: Book, rules: Optional[Rules] = None) -> Decision:
        return evaluate(book, rules or self.rules)

    def _view_for(self, isbn: str, outcome: ResolutionOutcome) -> LookupView:
        if isinstance(outcome, Found):
            book = outcome.book
            return LookupView(
                ViewState.FOUND,
                isbn=isbn,
                book=book,
                decision=self.evaluate(book),
                message=f"Successfully found book: {book.title}",
            )
        if isinstance(outcome, NotFound):
            return LookupView(ViewState.NOT_FOUND, isbn=isbn, message=f"No book found with ISBN: {isbn}")
        if isinstance(outcome, Failed):
            return LookupView(
                ViewState.ERROR,
                isbn=isbn,
                message=f"Error fetching book details: {outcome.reason}",
            )
        raise TypeError(f"Unexpected resolution outcome: {outcome!r}")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Drop the current result, ignore any pending lookup and stop the camera."""
        self._request_seq += 1
        self._publish(LookupView(ViewState.IDLE))
        self.session.stop()

    async def close(self) -> None:
        self.session.close()
        if self.lookup_task is not None and not self.lookup_task.done():
            self.lookup_task.cancel()
        await self.resolver.close()

    def _publish(self, view: LookupView) -> None:
        logger.debug(f"View -> {view.state.value} ({view.message})")
        self.view = view
        if self.on_view:
            self.on_view(view)

    def _emit_status(self, text: str) -> None:
        self.last_status = text
        if self.on_status:
            self.on_status(text)
