import asyncio
import logging
from typing import Callable

import httpx
import numpy as np

from toddler_ai.exceptions import PlaybackError
from toddler_ai.models import PlaybackState
from toddler_ai.recording.audio_utils import decode_audio
from toddler_ai.services.audio_codec import decode_data_url, is_data_url

logger = logging.getLogger(__name__)


class SoundDeviceOutput:
    """One-shot playback of a decoded buffer through sounddevice.

    ``on_finished`` is called from the PortAudio thread when the stream
    stops, whether it ran to the end or was stopped early.
    """

    def __init__(self, samples: np.ndarray, sample_rate: int, on_finished: Callable[[], None]) -> None:
        import sounddevice as sd

        self._sd = sd
        self._samples = samples
        self._pos = 0
        self._stream = sd.OutputStream(
            samplerate=sample_rate,
            channels=samples.shape[1],
            dtype="float32",
            callback=self._callback,
            finished_callback=on_finished,
        )

    def start(self) -> None:
        self._stream.start()

    def stop(self) -> None:
        self._stream.stop()
        self._stream.close()

    def _callback(self, outdata: np.ndarray, frames: int, timeinfo, status) -> None:  # noqa: ANN001
        """PortAudio callback. Copy the next block, stop after the last one."""
        chunk = self._samples[self._pos:self._pos + frames]
        outdata[: len(chunk)] = chunk
        self._pos += len(chunk)
        if len(chunk) < frames:
            outdata[len(chunk):] = 0
            raise self._sd.CallbackStop


class PlaybackSession:
    """Plays answer audio, one clip at a time.

    States: ``IDLE`` and ``PLAYING``. Starting a clip stops whatever was
    playing. A ``RecordingSession`` calls ``stop()`` before it opens the
    microphone.

    ``output_factory(samples, sample_rate, on_finished)`` must return an
    object with ``start()`` and ``stop()``; it defaults to ``SoundDeviceOutput``.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        http_client: httpx.AsyncClient | None = None,
        output_factory: Callable | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http_client
        self._output_factory = output_factory or SoundDeviceOutput
        self._state = PlaybackState.IDLE
        self._handle = None
        # Bumped on every play/stop so stale loads and callbacks are ignored
        self._generation = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._state_callbacks: list[Callable[[PlaybackState], None]] = []
        self._error_callbacks: list[Callable[[Exception], None]] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    def on_state_change(self, fn: Callable[[PlaybackState], None]) -> None:
        self._state_callbacks.append(fn)

    def on_error(self, fn: Callable[[Exception], None]) -> None:
        self._error_callbacks.append(fn)

    async def play(self, url: str | None) -> None:
        """Start playing *url* (a data URL, an absolute URL or a server path).

        Returns once playback has started. Raises ``PlaybackError`` if there
        is nothing to play or the audio cannot be loaded or rendered.
        """
        if not url:
            raise PlaybackError("No audio to play")

        self.stop()
        self._loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        self._set_state(PlaybackState.PLAYING)

        try:
            data = await self._load(url)
            samples, sample_rate = decode_audio(data)
        except (httpx.HTTPError, ValueError, RuntimeError) as e:
            error = PlaybackError("Could not load the audio response.", e)
            self._render_failed(generation, error)
            raise error from e

        if generation != self._generation:
            # superseded by a newer play() or stop() while loading
            return

        try:
            handle = self._output_factory(
                samples, sample_rate, lambda: self._finished_threadsafe(generation)
            )
            handle.start()
        except Exception as e:
            error = PlaybackError("Could not play the audio response.", e)
            self._render_failed(generation, error)
            raise error from e
        self._handle = handle

    def stop(self) -> None:
        """Stop and discard the current clip, if any."""
        self._generation += 1
        handle, self._handle = self._handle, None
        if handle is not None:
            try:
                handle.stop()
            except Exception:
                logger.exception("Error while stopping playback")
        self._set_state(PlaybackState.IDLE)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load(self, url: str) -> bytes:
        if is_data_url(url):
            _mime, data = decode_data_url(url)
            return data

        if not url.startswith(("http://", "https://")):
            url = f"{self.base_url}/{url.lstrip('/')}"
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=30.0)
        resp = await self._http.get(url)
        resp.raise_for_status()
        return resp.content

    def _finished_threadsafe(self, generation: int) -> None:
        """Called from the audio thread; hop back onto the event loop."""
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._finished, generation)

    def _finished(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._handle = None
        self._set_state(PlaybackState.IDLE)

    def _render_failed(self, generation: int, error: PlaybackError) -> None:
        if generation == self._generation:
            self._handle = None
            self._set_state(PlaybackState.IDLE)
        logger.error("Playback failed: %s", error.cause)
        for fn in self._error_callbacks:
            try:
                fn(error)
            except Exception:
                logger.exception("Playback error listener failed")

    def _set_state(self, state: PlaybackState) -> None:
        if state is self._state:
            return
        self._state = state
        for fn in self._state_callbacks:
            try:
                fn(state)
            except Exception:
                logger.exception("Playback state listener failed")

    async def aclose(self) -> None:
        self.stop()
        if self._http is not None:
            await self._http.aclose()
