"""
Unit tests for the scanner session state machine.
"""

import asyncio

import pytest

from shelfkeep.errors import CameraAccessError, DecodeError
from shelfkeep.scanner.session import ScannerState
from tests.conftest import wait_until


class Recorder:
    """Collects detections and status messages."""

    def __init__(self):
        self.detected: list[str] = []
        self.statuses: list[str] = []

    def on_detect(self, isbn: str) -> None:
        self.detected.append(isbn)

    def on_status(self, text: str) -> None:
        self.statuses.append(text)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


class TestStartStop:
    """Lifecycle transitions."""

    @pytest.mark.asyncio
    async def test_initial_state(self, session):
        assert session.state == ScannerState.IDLE
        assert not session.has_device

    @pytest.mark.asyncio
    async def test_start_streams(self, session, camera_factory, recorder):
        await session.start(recorder.on_detect, recorder.on_status)

        assert session.is_streaming
        assert session.has_device
        assert camera_factory.active == 1
        assert "Camera ready. Point at an ISBN barcode." in recorder.statuses

    @pytest.mark.asyncio
    async def test_stop_releases_device(self, session, camera_factory, decoder, recorder):
        await session.start(recorder.on_detect, recorder.on_status)

        session.stop()

        assert session.state == ScannerState.STOPPED
        assert not session.has_device
        assert camera_factory.active == 0
        assert camera_factory.cameras[0].release_calls == 1
        assert decoder.reset_calls == 1

    @pytest.mark.asyncio
    async def test_stop_twice_is_safe(self, session, camera_factory, recorder):
        await session.start(recorder.on_detect, recorder.on_status)

        session.stop()
        session.stop()

        assert session.state == ScannerState.STOPPED
        assert not session.has_device
        assert camera_factory.cameras[0].release_calls == 1

    @pytest.mark.asyncio
    async def test_stop_from_idle(self, session):
        session.stop()

        assert session.state == ScannerState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_waits_for_in_flight_frame_grab(self, session, camera_factory, recorder):
        camera_factory.read_delay = 0.2
        await session.start(recorder.on_detect, recorder.on_status)
        camera = camera_factory.cameras[0]
        await wait_until(lambda: camera.reading)

        session.stop()

        assert session.state == ScannerState.STOPPED
        assert not session.has_device
        await wait_until(lambda: camera.release_calls == 1)
        assert not camera.released_during_read
        assert camera_factory.active == 0

    @pytest.mark.asyncio
    async def test_restart_while_streaming_keeps_one_handle(self, session, camera_factory, recorder):
        await session.start(recorder.on_detect, recorder.on_status)
        await session.start(recorder.on_detect, recorder.on_status)

        assert len(camera_factory.cameras) == 2
        first, second = camera_factory.cameras
        # the first handle was released before the second was opened
        assert first.release_calls == 1
        assert second.opened
        assert camera_factory.active == 1
        assert session.is_streaming

    @pytest.mark.asyncio
    async def test_release_runs_when_decoder_reset_fails(self, session, camera_factory, decoder, recorder):
        await session.start(recorder.on_detect, recorder.on_status)
        decoder.reset_error = RuntimeError("reset exploded")

        session.stop()

        assert camera_factory.active == 0
        assert session.state == ScannerState.STOPPED


class TestCameraFailure:
    """Camera acquisition errors."""

    @pytest.mark.asyncio
    async def test_access_error_moves_to_error(self, session, camera_factory, camera_denied, recorder):
        camera_factory.fail_next(camera_denied)

        with pytest.raises(CameraAccessError):
            await session.start(recorder.on_detect, recorder.on_status)

        assert session.state == ScannerState.ERROR
        assert session.last_error == "Permission denied"
        assert not session.has_device
        assert "Camera error: Permission denied" in recorder.statuses

    @pytest.mark.asyncio
    async def test_retry_after_error(self, session, camera_factory, camera_denied, recorder):
        camera_factory.fail_next(camera_denied)
        with pytest.raises(CameraAccessError):
            await session.start(recorder.on_detect, recorder.on_status)

        await session.start(recorder.on_detect, recorder.on_status)

        assert session.is_streaming
        assert session.last_error is None
        assert camera_factory.active == 1

    @pytest.mark.asyncio
    async def test_stop_from_error(self, session, camera_factory, camera_denied, recorder):
        camera_factory.fail_next(camera_denied)
        with pytest.raises(CameraAccessError):
            await session.start(recorder.on_detect, recorder.on_status)

        session.stop()

        assert session.state == ScannerState.STOPPED

    @pytest.mark.asyncio
    async def test_driver_crash_is_access_error(self, session, camera_factory, recorder):
        camera_factory.fail_next(RuntimeError("driver crash"))

        with pytest.raises(CameraAccessError) as exc_info:
            await session.start(recorder.on_detect, recorder.on_status)

        assert "driver crash" in exc_info.value.message
        assert session.state == ScannerState.ERROR
        assert not session.has_device
        assert camera_factory.cameras[0].release_calls == 1

    @pytest.mark.asyncio
    async def test_cancelled_start_releases_device(self, session, camera_factory, recorder):
        camera_factory.open_delay = 0.1
        starting = asyncio.create_task(session.start(recorder.on_detect, recorder.on_status))
        await wait_until(lambda: camera_factory.cameras and camera_factory.cameras[0].opening)

        starting.cancel()
        with pytest.raises(asyncio.CancelledError):
            await starting

        assert session.state == ScannerState.STOPPED
        camera = camera_factory.cameras[0]
        await wait_until(lambda: camera.release_calls == 1)
        assert camera_factory.active == 0


class TestDecodeLoop:
    """Decode callback contract."""

    @pytest.mark.asyncio
    async def test_valid_isbn_is_detected(self, session, decoder, recorder):
        decoder.feed("978-0-307-47427-8")

        await session.start(recorder.on_detect, recorder.on_status)
        await wait_until(lambda: recorder.detected)

        assert recorder.detected == ["9780307474278"]
        assert "Detected code: 978-0-307-47427-8" in recorder.statuses

    @pytest.mark.asyncio
    async def test_session_does_not_stop_itself(self, session, decoder, recorder):
        decoder.feed("9780307474278")

        await session.start(recorder.on_detect, recorder.on_status)
        await wait_until(lambda: recorder.detected)

        assert session.is_streaming
        assert session.has_device

    @pytest.mark.asyncio
    async def test_repeated_code_fires_once(self, session, decoder, recorder):
        decoder.feed("9780307474278", "9780307474278", None, "9780307474278", "9783161484100")

        await session.start(recorder.on_detect, recorder.on_status)
        await wait_until(lambda: len(recorder.detected) == 2)

        assert recorder.detected == ["9780307474278", "9783161484100"]

    @pytest.mark.asyncio
    async def test_invalid_code_is_reported_not_detected(self, session, decoder, recorder):
        decoder.feed("https://example.com", "9780307474278")

        await session.start(recorder.on_detect, recorder.on_status)
        await wait_until(lambda: recorder.detected)

        assert "Invalid ISBN format: https://example.com" in recorder.statuses
        assert recorder.detected == ["9780307474278"]

    @pytest.mark.asyncio
    async def test_not_found_misses_are_silent(self, session, decoder, recorder):
        decoder.feed(None, None, None, "9780307474278")

        await session.start(recorder.on_detect, recorder.on_status)
        await wait_until(lambda: recorder.detected)

        assert not any(s.startswith("Scan error") for s in recorder.statuses)

    @pytest.mark.asyncio
    async def test_decode_errors_are_reported_and_stream_continues(self, session, decoder, recorder):
        decoder.feed(DecodeError("checksum failure"), RuntimeError("glitch"), "9780307474278")

        await session.start(recorder.on_detect, recorder.on_status)
        await wait_until(lambda: recorder.detected)

        assert "Scan error: checksum failure" in recorder.statuses
        assert "Scan error: glitch" in recorder.statuses
        assert session.is_streaming

    @pytest.mark.asyncio
    async def test_callback_may_stop_session(self, session, camera_factory, decoder, recorder):
        def stop_on_detect(isbn):
            recorder.on_detect(isbn)
            session.stop()

        decoder.feed("9780307474278", "9783161484100")

        await session.start(stop_on_detect, recorder.on_status)
        await wait_until(lambda: session.state == ScannerState.STOPPED)

        assert recorder.detected == ["9780307474278"]
        assert camera_factory.active == 0

    @pytest.mark.asyncio
    async def test_crashing_callback_releases_device(self, session, camera_factory, decoder, recorder):
        def broken(isbn):
            raise RuntimeError("ui bug")

        decoder.feed("9780307474278")

        await session.start(broken, recorder.on_status)
        await wait_until(lambda: session.state == ScannerState.ERROR)

        assert camera_factory.active == 0
        assert session.last_error == "ui bug"

    @pytest.mark.asyncio
    async def test_refused_code_is_offered_again(self, session, decoder, recorder):
        offers = []

        def busy_first(isbn):
            offers.append(isbn)
            return len(offers) > 1

        decoder.feed("9780307474278", None, "9780307474278", "9780307474278")

        await session.start(busy_first, recorder.on_status)
        await wait_until(lambda: len(offers) == 2)
        await wait_until(lambda: not decoder.script)

        assert offers == ["9780307474278", "9780307474278"]
        assert recorder.statuses.count("Detected code: 9780307474278") == 1
