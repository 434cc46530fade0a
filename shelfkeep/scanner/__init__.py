"""
Barcode Scanner Module for ShelfKeep

This module handles everything between the camera and a valid ISBN:
- Camera acquisition and release
- Frame decoding
- ISBN normalization
- The scanner session state machine
"""

from shelfkeep.scanner.isbn import normalize_isbn, is_valid_isbn, require_isbn
from shelfkeep.scanner.camera import CameraDevice, OpenCVCamera, ResolutionConstraints
from shelfkeep.scanner.decoder import FrameDecoder, ZXingDecoder
from shelfkeep.scanner.session import ScannerSession, ScannerState

__all__ = [
    "normalize_isbn",
    "is_valid_isbn",
    "require_isbn",
    "CameraDevice",
    "OpenCVCamera",
    "ResolutionConstraints",
    "FrameDecoder",
    "ZXingDecoder",
    "ScannerSession",
    "ScannerState",
]
