"""
Scanner Session

Owns one camera device and a continuous decode loop. Validated ISBNs are
handed to the owner through `on_detect`; diagnostics go to `on_status`.

State machine:
    IDLE/STOPPED/ERROR --start--> INITIALIZING --> STREAMING <--> DECODING
    any state --stop--> STOPPED
    INITIALIZING --camera failure--> ERROR

The session never stops itself on a detection; the owner decides.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from shelfkeep.errors import CameraAccessError, DecodeError, DecodeTransient
from shelfkeep.scanner.camera import CameraDevice
from shelfkeep.scanner.decoder import FrameDecoder
from shelfkeep.scanner.isbn import normalize_isbn


# returning False refuses the detection; the same code is offered again on
# the next frame that carries it
DetectCallback = Callable[[str], Optional[bool]]
StatusCallback = Callable[[str], None]


class ScannerState(Enum):
    """Lifecycle state of a scanner session."""
    IDLE = "idle"
    INITIALIZING = "initializing"
    STREAMING = "streaming"
    DECODING = "decoding"
    STOPPED = "stopped"
    ERROR = "error"


ACTIVE_STATES = {ScannerState.INITIALIZING, ScannerState.STREAMING, ScannerState.DECODING}


def _ignore(_: str) -> None:
    pass


class ScannerSession:
    """
    Camera + decoder lifecycle.

    Usage:
        session = ScannerSession(lambda: OpenCVCamera(0), ZXingDecoder())
        await session.start(on_detect=print, on_status=print)
        ...
        session.stop()
    """

    def __init__(
        self,
        camera_factory: Callable[[], CameraDevice],
        decoder: FrameDecoder,
        decode_interval: float = 0.1,
    ):
        """
        Initialize session.

        Args:
            camera_factory: Creates a fresh, unopened camera device
            decoder: Frame decoder
            decode_interval: Pause between frames in seconds
        """
        self.camera_factory = camera_factory
        self.decoder = decoder
        self.decode_interval = decode_interval

        self.state = ScannerState.IDLE
        self.last_error: Optional[str] = None

        self._camera: Optional[CameraDevice] = None
        self._task: Optional[asyncio.Task] = None
        # frame grab running in a worker thread; the device is not released
        # until it returns
        self._read: Optional[asyncio.Future] = None
        # bumped by every start/stop; a loop or pending start from an older
        # generation must not touch the session
        self._generation = 0
        self._last_text: Optional[str] = None
        self._announced: Optional[str] = None
        self._frame_missing = False
        self._on_detect: DetectCallback = _ignore
        self._on_status: StatusCallback = _ignore

    @property
    def is_streaming(self) -> bool:
        return self.state in (ScannerState.STREAMING, ScannerState.DECODING)

    @property
    def has_device(self) -> bool:
        return self._camera is not None

    async def start(
        self,
        on_detect: DetectCallback,
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        """
        Acquire the camera and start decoding.

        Calling this while a session is active restarts it, so at most one
        device handle is ever held.

        Args:
            on_detect: Called with each newly detected valid ISBN
            on_status: Called with human-readable scanner diagnostics

        Raises:
            CameraAccessError: The device could not be acquired
        """
        if self.state in ACTIVE_STATES or self._camera is not None:
            logger.debug("Scanner already active; restarting")
            self.stop()

        self._generation += 1
        generation = self._generation
        self._on_detect = on_detect
        self._on_status = on_status or _ignore
        self._last_text = None
        self._announced = None
        self._frame_missing = False
        self.last_error = None

        self._set_state(ScannerState.INITIALIZING)
        self._emit_status("Initializing camera...")

        camera = self.camera_factory()
        opening = asyncio.ensure_future(asyncio.to_thread(camera.open))
        try:
            await asyncio.shield(opening)
        except asyncio.CancelledError:
            # the worker thread may still be inside open()
            opening.add_done_callback(lambda _: camera.release())
            if generation == self._generation:
                self._generation += 1
                self._set_state(ScannerState.STOPPED)
            logger.debug("Scanner start cancelled while the camera was opening")
            raise
        except CameraAccessError as e:
            self._abort_start(camera, generation, e)
            raise
        except Exception as e:
            error = CameraAccessError(f"Camera could not be opened: {e}", detail=type(e).__name__)
            self._abort_start(camera, generation, error)
            raise error from e

        if generation != self._generation:
            # stopped or restarted while the device was opening
            camera.release()
            return

        self._camera = camera
        self._set_state(ScannerState.STREAMING)
        self._task = asyncio.create_task(self._run(camera, generation))
        self._task.add_done_callback(self._on_loop_done)
        self._emit_status("Camera ready. Point at an ISBN barcode.")

    def stop(self) -> None:
        """
        Stop decoding and release the camera.

        Safe to call repeatedly and from any state. The device is released
        even when resetting the decoder fails; if a frame grab is still
        running in a worker thread, release happens as soon as it returns.
        """
        self._generation += 1

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

        camera, self._camera = self._camera, None
        try:
            self.decoder.reset()
        except Exception as e:
            logger.warning(f"Decoder reset failed: {e}")
        finally:
            if camera is not None:
                self._release(camera)

        if self.state != ScannerState.STOPPED:
            self._set_state(ScannerState.STOPPED)

    def close(self) -> None:
        """Tear down the session."""
        self.stop()

    async def _run(self, camera: CameraDevice, generation: int) -> None:
        """Decode loop; runs until stop() bumps the generation."""
        while generation == self._generation:
            self._read = asyncio.ensure_future(asyncio.to_thread(camera.read))
            frame = await asyncio.shield(self._read)
            if generation != self._generation:
                break

            if frame is None:
                if not self._frame_missing:
                    self._frame_missing = True
                    self._emit_status("Scan error: no frame from camera")
            else:
                self._frame_missing = False
                text = await self._decode(frame, generation)
                if text and generation == self._generation:
                    self._handle_text(text)

            await asyncio.sleep(self.decode_interval)

    async def _decode(self, frame, generation: int) -> Optional[str]:
        self._set_state(ScannerState.DECODING)
        try:
            return await asyncio.to_thread(self.decoder.decode, frame)
        except DecodeTransient:
            return None
        except DecodeError as e:
            self._emit_status(f"Scan error: {e.message}")
            return None
        except Exception as e:
            logger.warning(f"Unexpected decoder error: {e}")
            self._emit_status(f"Scan error: {e}")
            return None
        finally:
            if generation == self._generation:
                self._set_state(ScannerState.STREAMING)

    def _handle_text(self, text: str) -> None:
        # same code held in front of the camera decodes on every frame
        if text == self._last_text:
            return
        self._last_text = text

        if text != self._announced:
            self._announced = text
            self._emit_status(f"Detected code: {text}")

        isbn = normalize_isbn(text)
        if isbn is None:
            self._emit_status(f"Invalid ISBN format: {text}")
            return

        logger.info(f"Detected ISBN {isbn}")
        if self._on_detect(isbn) is False:
            logger.debug(f"Detection of {isbn} refused; will offer it again")
            self._last_text = None

    def _on_loop_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return

        logger.error(f"Decode loop crashed: {error}")
        if self._task is task:
            self._task = None
            camera, self._camera = self._camera, None
            if camera is not None:
                self._release(camera)
            self.last_error = str(error)
            self._set_state(ScannerState.ERROR)
            self._emit_status(f"Scanner stopped: {error}")

    def _abort_start(self, camera: CameraDevice, generation: int, error: CameraAccessError) -> None:
        camera.release()
        if generation == self._generation:
            self.last_error = error.message
            self._set_state(ScannerState.ERROR)
            self._emit_status(f"Camera error: {error.message}")
        logger.error(f"Camera acquisition failed: {error.message} ({error.detail})")

    def _release(self, camera: CameraDevice) -> None:
        read = self._read
        if read is not None and not read.done():
            logger.debug("Frame grab in flight; deferring camera release")
            read.add_done_callback(lambda _: camera.release())
            return
        camera.release()

    def _set_state(self, state: ScannerState) -> None:
        if state != self.state:
            logger.debug(f"Scanner {self.state.value} -> {state.value}")
        self.state = state

    def _emit_status(self, text: str) -> None:
        logger.debug(f"Scanner status: {text}")
        self._on_status(text)
