import asyncio
import logging
import threading
from typing import Callable

import numpy as np

from toddler_ai.config import settings
from toddler_ai.exceptions import CaptureError, EmptyCaptureError, ToddlerAIError
from toddler_ai.models import AnswerBundle, RecordingState
from toddler_ai.recording.api_client import AskClient
from toddler_ai.recording.audio_utils import samples_to_wav_bytes
from toddler_ai.recording.playback import PlaybackSession

logger = logging.getLogger(__name__)


def _sounddevice_input_stream(**kwargs):
    import sounddevice as sd

    return sd.InputStream(**kwargs)


class RecordingSession:
    """Records one spoken question and submits it to the server.

    State machine::

        IDLE --start--> RECORDING --stop--> PROCESSING --(answer | error)--> IDLE

    ``start`` and ``stop`` are ignored outside the state they apply to, so
    there is never more than one capture or one submission in flight.
    Every trip through PROCESSING ends in exactly one ``on_result`` or
    ``on_error`` notification, and always back in IDLE.

    Threading model (two contexts):

    1. **Audio callback**: runs in PortAudio's thread. May ONLY append to
       the buffer under ``_lock``. The stream's ``finished_callback`` also
       runs there and hops to the loop with ``call_soon_threadsafe``.

    2. **Event loop**: everything else, including state transitions and
       listener notifications.
    """

    def __init__(
        self,
        client: AskClient,
        *,
        playback: PlaybackSession | None = None,
        sample_rate: int | None = None,
        max_record_seconds: float | None = None,
        stream_factory: Callable | None = None,
    ) -> None:
        self.client = client
        self.playback = playback
        self.sample_rate = sample_rate or settings.sample_rate
        self.max_record_seconds = max_record_seconds or settings.max_record_seconds
        self._stream_factory = stream_factory or _sounddevice_input_stream

        # Audio buffer, guarded by _lock
        self._buffer: list[np.ndarray] = []
        self._lock = threading.Lock()

        # Lifecycle, only touched on the event loop
        self._state = RecordingState.IDLE
        self._starting = False
        self._capture_id = 0
        self._lost_while_starting = 0
        self._stream = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._auto_stop: asyncio.TimerHandle | None = None
        self._auto_stop_task: asyncio.Task | None = None

        # Listener registry
        self._state_callbacks: list[Callable[[RecordingState], None]] = []
        self._result_callbacks: list[Callable[[AnswerBundle], None]] = []
        self._error_callbacks: list[Callable[[ToddlerAIError], None]] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> RecordingState:
        return self._state

    def on_state_change(self, fn: Callable[[RecordingState], None]) -> None:
        self._state_callbacks.append(fn)

    def on_result(self, fn: Callable[[AnswerBundle], None]) -> None:
        self._result_callbacks.append(fn)

    def on_error(self, fn: Callable[[ToddlerAIError], None]) -> None:
        self._error_callbacks.append(fn)

    async def start(self) -> bool:
        """Open the microphone and start buffering.

        Returns False if a capture or submission is already underway.
        Raises ``CaptureError`` (after notifying ``on_error``) if the device
        cannot be opened; the session stays IDLE.
        """
        if self._state is not RecordingState.IDLE or self._starting:
            logger.debug("start ignored in state %s", self._state.value)
            return False

        self._starting = True
        try:
            if self.playback is not None:
                self.playback.stop()

            self._loop = asyncio.get_running_loop()
            self._capture_id += 1
            with self._lock:
                self._buffer = []

            try:
                self._stream = await asyncio.to_thread(self._open_stream, self._capture_id)
            except Exception as e:
                error = CaptureError(
                    "Could not start recording. Please check microphone permissions.", e
                )
                logger.error("Microphone unavailable: %s", e)
                self._publish_error(error)
                raise error from e
        finally:
            self._starting = False

        self._set_state(RecordingState.RECORDING)
        self._auto_stop = self._loop.call_later(self.max_record_seconds, self._auto_stop_fired)
        if self._lost_while_starting == self._capture_id:
            self.fail(CaptureError("The microphone stopped unexpectedly."))
        return True

    async def stop(self) -> AnswerBundle | None:
        """Finish the capture and submit it.

        Returns the AnswerBundle, or None if the call was ignored or the
        question failed (the failure goes to ``on_error``).
        """
        if self._state is not RecordingState.RECORDING:
            logger.debug("stop ignored in state %s", self._state.value)
            return None

        self._cancel_auto_stop()
        stream, self._stream = self._stream, None
        self._set_state(RecordingState.PROCESSING)

        error: ToddlerAIError | None = None
        try:
            await asyncio.to_thread(self._close_stream, stream)
            audio = self._drain_buffer()
            logger.info("Submitting question", extra={"audio_bytes": len(audio)})
            bundle = await self.client.submit(audio)
        except ToddlerAIError as e:
            error = e
        except Exception as e:
            logger.exception("Unexpected failure while submitting question")
            error = ToddlerAIError("Sorry, I couldn't process your question.", e)
        finally:
            self._set_state(RecordingState.IDLE)

        if error is not None:
            self._publish_error(error)
            return None
        self._publish_result(bundle)
        return bundle

    def fail(self, error: Exception) -> None:
        """Abort a capture after a device-level error. Buffered audio is dropped."""
        if self._state is not RecordingState.RECORDING:
            return

        self._cancel_auto_stop()
        stream, self._stream = self._stream, None
        try:
            self._close_stream(stream)
        except CaptureError:
            logger.warning("Microphone did not close cleanly after failure")
        with self._lock:
            self._buffer = []

        capture_error = error if isinstance(error, CaptureError) else CaptureError(
            "Recording stopped unexpectedly.", error
        )
        logger.error("Capture failed: %s", error)
        self._set_state(RecordingState.IDLE)
        self._publish_error(capture_error)

    # ------------------------------------------------------------------
    # Device handling
    # ------------------------------------------------------------------

    def _open_stream(self, capture_id: int):
        stream = self._stream_factory(
            samplerate=self.sample_rate,
            channels=1,
            dtype="float32",
            callback=self._audio_callback,
            finished_callback=lambda: self._stream_finished(capture_id),
            blocksize=1024,
        )
        stream.start()
        return stream

    @staticmethod
    def _close_stream(stream) -> None:
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            raise CaptureError("Could not release the microphone.", e) from e

    def _drain_buffer(self) -> bytes:
        with self._lock:
            chunks, self._buffer = self._buffer, []
        if not chunks:
            raise EmptyCaptureError()
        samples = np.concatenate(chunks, axis=0).flatten()
        if samples.size == 0:
            raise EmptyCaptureError()
        return samples_to_wav_bytes(samples, self.sample_rate)

    # ------------------------------------------------------------------
    # Audio thread
    # ------------------------------------------------------------------

    def _audio_callback(self, indata: np.ndarray, frames: int, timeinfo, status) -> None:  # noqa: ANN001
        """PortAudio callback. Must be fast: buffer only, no I/O."""
        with self._lock:
            self._buffer.append(indata.copy())

    def _stream_finished(self, capture_id: int) -> None:
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._device_lost, capture_id)

    def _device_lost(self, capture_id: int) -> None:
        # A deliberate stop has already moved us to PROCESSING
        if capture_id != self._capture_id:
            return
        if self._starting:
            # start() is still waiting on the open; it re-checks this
            self._lost_while_starting = capture_id
        elif self._state is RecordingState.RECORDING:
            self.fail(CaptureError("The microphone stopped unexpectedly."))

    # ------------------------------------------------------------------
    # Auto-stop
    # ------------------------------------------------------------------

    def _auto_stop_fired(self) -> None:
        self._auto_stop = None
        logger.info("Maximum recording length reached, stopping")
        self._auto_stop_task = asyncio.ensure_future(self.stop())
        self._auto_stop_task.add_done_callback(self._auto_stop_done)

    @staticmethod
    def _auto_stop_done(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Automatic stop failed: %s", task.exception())

    def _cancel_auto_stop(self) -> None:
        if self._auto_stop is not None:
            self._auto_stop.cancel()
            self._auto_stop = None

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _set_state(self, state: RecordingState) -> None:
        self._state = state
        for fn in self._state_callbacks:
            try:
                fn(state)
            except Exception:
                logger.exception("Recording state listener failed")

    def _publish_result(self, bundle: AnswerBundle) -> None:
        for fn in self._result_callbacks:
            try:
                fn(bundle)
            except Exception:
                logger.exception("Result listener failed")

    def _publish_error(self, error: ToddlerAIError) -> None:
        for fn in self._error_callbacks:
            try:
                fn(error)
            except Exception:
                logger.exception("Error listener failed")
