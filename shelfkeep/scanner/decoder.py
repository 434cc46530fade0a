"""
Barcode decoding for video frames.

Wraps zxing-cpp. A frame without a symbol raises `SymbolNotFound`, which
the session treats as a normal miss.
"""

from typing import Any, Protocol

import cv2
import zxingcpp
from loguru import logger

from shelfkeep.errors import DecodeError, SymbolNotFound


class FrameDecoder(Protocol):
    """What the scanner session needs from a decoder."""

    def decode(self, frame: Any) -> str:
        """Return the decoded text; raises SymbolNotFound or DecodeError."""

    def reset(self) -> None:
        """Drop any per-stream state."""


class ZXingDecoder:
    """zxing-cpp backed decoder for 1D/2D symbols in BGR or grayscale frames."""

    def __init__(self, try_rotate: bool = True):
        self.try_rotate = try_rotate
        self.frames_decoded = 0

    def decode(self, frame: Any) -> str:
        if frame is None:
            raise DecodeError("Empty frame")

        image = frame
        if getattr(frame, "ndim", 2) == 3:
            # grayscale is enough for barcodes and halves the work
            image = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)

        try:
            results = zxingcpp.read_barcodes(image, try_rotate=self.try_rotate)
        except (RuntimeError, ValueError) as e:
            raise DecodeError(f"Decoder failure: {e}") from e

        self.frames_decoded += 1
        for result in results:
            text = (result.text or "").strip()
            if text:
                logger.debug(f"Decoded {result.format}: {text}")
                return text

        raise SymbolNotFound()

    def reset(self) -> None:
        self.frames_decoded = 0
