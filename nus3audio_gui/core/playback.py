"""
Playback Module

Plays one sound at a time through sounddevice.

Rapid play/pause/stop requests from the GUI are serialized instead of
racing the output stream.
"""

from enum import Enum
import logging
import threading
from typing import Callable, Optional
import numpy as np

from .audio_io import AudioFile
from .codec import DecodeError

logger = logging.getLogger(__name__)


class PlaybackError(RuntimeError):
    """Audio could not be played."""


class PlaybackState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class LoopingBuffer:
    """
    Frame source that wraps from loop end back to loop start.

    Without loop points it plays once and then reports finished.
    """

    def __init__(self, frames: np.ndarray, loop_points: Optional[tuple[int, int]] = None):
        if frames.ndim == 1:
            frames = frames.reshape(-1, 1)
        self.frames = np.ascontiguousarray(frames, dtype=np.float32)
        self.position = 0
        self.loop_points: Optional[tuple[int, int]] = None

        if loop_points is not None:
            start, end = loop_points
            end = min(end, len(self.frames))
            if 0 <= start < end:
                self.loop_points = (start, end)

    @property
    def num_frames(self) -> int:
        return len(self.frames)

    @property
    def channels(self) -> int:
        return self.frames.shape[1]

    @property
    def finished(self) -> bool:
        return self.loop_points is None and self.position >= self.num_frames

    def read(self, count: int) -> np.ndarray:
        """
        Next count frames, zero padded after the end.

        Returns:
            Array of shape (count, channels)
        """
        out = np.zeros((count, self.channels), dtype=np.float32)
        written = 0

        while written < count:
            limit = self.loop_points[1] if self.loop_points else self.num_frames
            if self.position >= limit:
                if self.loop_points is None:
                    break
                self.position = self.loop_points[0]
                continue

            n = min(count - written, limit - self.position)
            out[written:written + n] = self.frames[self.position:self.position + n]
            written += n
            self.position += n

        return out


class Player:
    """
    Single-stream audio player.

    Two locks are used. The request lock serializes play/pause/stop calls
    and is held while the stream is started or stopped. The state lock
    guards buffer and state and is the only lock the audio callback takes,
    so stopping a stream never waits on a blocked callback.

    Args:
        stream_factory: Creates an output stream from
            (sample_rate, channels, callback, finished_callback). Defaults
            to a sounddevice.OutputStream.
    """

    def __init__(self, stream_factory: Optional[Callable] = None):
        self._stream_factory = stream_factory or _sounddevice_stream
        self._request_lock = threading.RLock()
        self._state_lock = threading.Lock()
        self._stream = None
        self._buffer: Optional[LoopingBuffer] = None
        self._sample_rate = 0
        self._state = PlaybackState.STOPPED

    @property
    def state(self) -> PlaybackState:
        with self._state_lock:
            return self._state

    @property
    def position_seconds(self) -> float:
        with self._state_lock:
            if self._buffer is None or not self._sample_rate:
                return 0.0
            return self._buffer.position / self._sample_rate

    @property
    def duration_seconds(self) -> float:
        with self._state_lock:
            if self._buffer is None or not self._sample_rate:
                return 0.0
            return self._buffer.num_frames / self._sample_rate

    @property
    def loop_points_seconds(self) -> Optional[tuple[float, float]]:
        with self._state_lock:
            if self._buffer is None or self._buffer.loop_points is None:
                return None
            start, end = self._buffer.loop_points
            return start / self._sample_rate, end / self._sample_rate

    def play(self, audio: AudioFile, loop_points: Optional[tuple[int, int]] = None):
        """
        Start playing audio from the beginning, replacing any current stream.

        Raises:
            PlaybackError: Output stream could not be opened
        """
        with self._request_lock:
            self.stop()
            buffer = LoopingBuffer(audio.frames(), loop_points)

            with self._state_lock:
                self._buffer = buffer
                self._sample_rate = audio.sample_rate

            try:
                stream = self._stream_factory(
                    audio.sample_rate,
                    buffer.channels,
                    self._callback,
                    self._on_finished,
                )
                stream.start()
            except PlaybackError:
                self.stop()
                raise
            except Exception as e:
                self.stop()
                raise PlaybackError(f"Could not play audio:\n{e}") from e

            self._stream = stream
            with self._state_lock:
                self._state = PlaybackState.PLAYING
            logger.debug(
                "Playing %d frames at %d Hz, loop %s",
                buffer.num_frames, audio.sample_rate, buffer.loop_points,
            )

    def pause(self):
        with self._request_lock:
            if self.state is PlaybackState.PLAYING and self._stream is not None:
                self._stream.stop()
                with self._state_lock:
                    self._state = PlaybackState.PAUSED

    def resume(self):
        with self._request_lock:
            if self.state is PlaybackState.PAUSED and self._stream is not None:
                self._stream.start()
                with self._state_lock:
                    self._state = PlaybackState.PLAYING

    def play_pause(self, item) -> PlaybackState:
        """
        Toggle playback of a sound.

        Pauses or resumes an active stream, otherwise starts playing item.

        Args:
            item: SoundItem to start if nothing is active

        Returns:
            The new state

        Raises:
            PlaybackError: Item is empty or can't be played
        """
        with self._request_lock:
            state = self.state
            if state is PlaybackState.PLAYING:
                self.pause()
            elif state is PlaybackState.PAUSED:
                self.resume()
            else:
                if item is None:
                    raise PlaybackError("Nothing is selected.")
                if item.audio is None:
                    raise PlaybackError("Audio of selected item is empty.")
                try:
                    audio = item.audio.decode()
                except DecodeError as e:
                    raise PlaybackError(f"Could not play audio:\n{e}") from e
                self.play(audio, item.loop_points)
            return self.state

    def stop(self):
        """Stop and forget the current stream."""
        with self._request_lock:
            stream, self._stream = self._stream, None
            if stream is not None:
                try:
                    stream.abort()
                    stream.close()
                except Exception as e:
                    logger.warning("Error closing output stream: %s", e)

            with self._state_lock:
                self._buffer = None
                self._sample_rate = 0
                self._state = PlaybackState.STOPPED

    def fill(self, outdata: np.ndarray, frames: int) -> bool:
        """
        Write the next frames into outdata.

        Returns:
            True when the sound has ended
        """
        with self._state_lock:
            if self._buffer is None:
                outdata.fill(0)
                return True
            outdata[:] = self._buffer.read(frames)
            return self._buffer.finished

    def _callback(self, outdata, frames, time_info, status):
        if status:
            logger.debug("Output stream status: %s", status)
        if self.fill(outdata, frames):
            import sounddevice as sd
            raise sd.CallbackStop

    def _on_finished(self):
        with self._state_lock:
            if self._state is PlaybackState.PLAYING and self._buffer is not None and self._buffer.finished:
                self._state = PlaybackState.STOPPED


def _sounddevice_stream(sample_rate: int, channels: int, callback, finished_callback):
    """Create a float32 sounddevice output stream."""
    try:
        import sounddevice as sd
    except OSError as e:
        raise PlaybackError(f"No audio output available:\n{e}") from e

    return sd.OutputStream(
        samplerate=sample_rate,
        channels=channels,
        dtype="float32",
        callback=callback,
        finished_callback=finished_callback,
    )
