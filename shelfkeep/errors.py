"""
Error Types for ShelfKeep

Exception hierarchy shared by the scanner, the catalog adapters and the
controller:
- Camera acquisition failures
- Frame decode failures (transient and reportable)
- Catalog failures
- Input validation
"""

from typing import Optional


class ShelfKeepError(Exception):
    """Base exception for ShelfKeep errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        detail: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.detail = detail
        super().__init__(message)


class CameraAccessError(ShelfKeepError):
    """Camera could not be acquired (permission, no device, constraints)."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="CAMERA_UNAVAILABLE",
            detail=detail,
        )


class DecodeError(ShelfKeepError):
    """Frame decode failed in a way worth reporting to the user."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="DECODE_ERROR",
            detail=detail,
        )


class DecodeTransient(DecodeError):
    """Decode miss that is expected between frames and never surfaced."""


class SymbolNotFound(DecodeTransient):
    """No barcode symbol was found in the frame."""

    def __init__(self):
        super().__init__("No barcode symbol found in frame")


class CatalogFailure(ShelfKeepError):
    """Catalog responded with something that cannot be used."""

    def __init__(self, source: str, detail: Optional[str] = None):
        self.source = source
        super().__init__(
            message=f"{source} catalog failure",
            code="CATALOG_FAILURE",
            detail=detail,
        )


class InvalidISBNError(ShelfKeepError):
    """Input does not normalize to an ISBN-10 or ISBN-13."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(
            message=f"Invalid ISBN format: {raw}",
            code="VALIDATION_ERROR",
            detail="Expected 10 or 13 digits after removing hyphens and spaces",
        )


class LookupInProgressError(ShelfKeepError):
    """A lookup was requested while another one is still pending."""

    def __init__(self, pending_isbn: Optional[str] = None):
        self.pending_isbn = pending_isbn
        super().__init__(
            message="A book lookup is already in progress",
            code="LOOKUP_IN_PROGRESS",
            detail=f"Pending ISBN: {pending_isbn}" if pending_isbn else None,
        )
