"""Camera access for the scanner session."""

from dataclasses import dataclass
from typing import Any, Optional, Protocol

import cv2
from loguru import logger

from shelfkeep.errors import CameraAccessError


@dataclass(frozen=True)
class ResolutionConstraints:
    """Acceptable capture sizes, in pixels."""

    min_width: int = 640
    min_height: int = 480
    ideal_width: int = 1280
    ideal_height: int = 720
    max_width: int = 1920
    max_height: int = 1080

    def requested_size(self) -> tuple[int, int]:
        """Ideal size clamped into the allowed range."""
        width = max(self.min_width, min(self.ideal_width, self.max_width))
        height = max(self.min_height, min(self.ideal_height, self.max_height))
        return width, height

    def accepts(self, width: int, height: int) -> bool:
        return width >= self.min_width and height >= self.min_height


class CameraDevice(Protocol):
    """What the scanner session needs from a camera."""

    def open(self) -> None:
        """Acquire the device; raises CameraAccessError."""

    def read(self) -> Optional[Any]:
        """Grab one frame, or None when no frame is available."""

    def release(self) -> None:
        """Release the device. Must be safe to call more than once."""


class OpenCVCamera:
    """OpenCV-backed capture device."""

    def __init__(
        self,
        index: int = 0,
        constraints: Optional[ResolutionConstraints] = None,
        backend: Optional[int] = None,
    ):
        """
        Args:
            index: Device index; on most laptops and phones-as-webcams the
                rear or external camera is not index 0, so this is configurable
            constraints: Resolution limits
            backend: Explicit OpenCV capture API (e.g. cv2.CAP_V4L2)
        """
        self.index = index
        self.constraints = constraints or ResolutionConstraints()
        self.backend = backend
        self.resolved_size: Optional[tuple[int, int]] = None
        self._cap: Optional[Any] = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> None:
        if self._cap is not None:
            return

        try:
            if self.backend is not None:
                cap = cv2.VideoCapture(self.index, self.backend)
            else:
                cap = cv2.VideoCapture(self.index)
        except cv2.error as e:
            raise CameraAccessError(f"Camera {self.index} could not be opened", detail=str(e)) from e

        if not cap.isOpened():
            cap.release()
            raise CameraAccessError(
                f"Camera {self.index} could not be opened",
                detail="Device missing, busy, or permission denied",
            )

        width, height = self.constraints.requested_size()
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        actual_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if actual_width > 0 and actual_height > 0 and not self.constraints.accepts(actual_width, actual_height):
            cap.release()
            raise CameraAccessError(
                f"Camera {self.index} resolution {actual_width}x{actual_height} is below the minimum",
                detail=f"Need at least {self.constraints.min_width}x{self.constraints.min_height}",
            )

        self.resolved_size = (actual_width, actual_height)
        self._cap = cap
        logger.info(f"Camera {self.index} opened | resolved_size={self.resolved_size}")

    def read(self) -> Optional[Any]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok:
            return None
        return frame

    def release(self) -> None:
        if self._cap is None:
            return
        cap, self._cap = self._cap, None
        cap.release()
        logger.info(f"Camera {self.index} released")
