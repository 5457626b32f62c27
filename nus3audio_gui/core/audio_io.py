"""
Audio I/O Module

Decodes and encodes PCM audio held in memory.

Technical assumptions:
- WAV, FLAC and OGG are decoded with soundfile (libsndfile)
- MP3 is decoded with pydub (requires ffmpeg)
- All decoded audio is float64 in range -1.0 to 1.0
- Channel order for stereo: [left, right] as (samples, 2) array
- Output WAV is always 16-bit PCM, which is what VGAudioCli expects
"""

from dataclasses import dataclass, field
import io
from typing import Optional
import numpy as np
import soundfile as sf


@dataclass
class AudioFile:
    """
    Decoded audio with its metadata.

    Attributes:
        data: Audio data as numpy array, Shape: (samples,) or (samples, channels)
        sample_rate: Sample rate in Hz
        channels: Number of channels
        num_samples: Number of samples per channel
        format_info: Format information (format, subtype)
    """
    data: np.ndarray
    sample_rate: int
    channels: int
    num_samples: int
    format_info: dict = field(default_factory=dict)

    def __post_init__(self):
        """Validate data integrity."""
        if self.data.ndim == 1:
            assert self.channels == 1, "1D array must be mono"
        elif self.data.ndim == 2:
            assert self.data.shape[1] == self.channels, "Channel count mismatch"
        else:
            raise ValueError("Audio array must be 1D or 2D")

    @property
    def duration_seconds(self) -> float:
        return self.num_samples / self.sample_rate if self.sample_rate else 0.0

    def get_channel(self, channel: int) -> np.ndarray:
        """
        Extract a single channel.

        Args:
            channel: 0 for left/Mono, 1 for right, ...

        Returns:
            1D numpy array with the channel samples
        """
        if self.data.ndim == 1:
            if channel != 0:
                raise ValueError("Mono audio only has channel 0")
            return self.data
        if not 0 <= channel < self.channels:
            raise ValueError(f"Channel {channel} does not exist")
        return self.data[:, channel]

    def frames(self) -> np.ndarray:
        """Audio as (samples, channels) array, also for mono."""
        if self.data.ndim == 1:
            return self.data.reshape(-1, 1)
        return self.data


def decode_audio(data: bytes, encoding: str) -> AudioFile:
    """
    Decode encoded audio bytes.

    Args:
        data: Encoded file content
        encoding: "wav", "flac", "ogg" or "mp3"

    Returns:
        AudioFile with float64 data

    Raises:
        ValueError: Unsupported encoding or undecodable data
    """
    if encoding == "mp3":
        return _decode_mp3(data)
    if encoding not in ("wav", "flac", "ogg"):
        raise ValueError(f"Unsupported encoding: {encoding}")

    try:
        samples, sample_rate = sf.read(io.BytesIO(data), dtype="float64", always_2d=False)
        info = sf.info(io.BytesIO(data))
    except (RuntimeError, TypeError) as e:
        raise ValueError(f"Could not decode {encoding} data: {e}") from e

    if samples.ndim == 1:
        channels = 1
        num_samples = len(samples)
    else:
        num_samples, channels = samples.shape

    return AudioFile(
        data=samples,
        sample_rate=sample_rate,
        channels=channels,
        num_samples=num_samples,
        format_info={"format": info.format, "subtype": info.subtype},
    )


def _decode_mp3(data: bytes) -> AudioFile:
    """
    Decode MP3 with pydub.

    Requires ffmpeg in system PATH for decoding.
    """
    from pydub import AudioSegment

    try:
        audio = AudioSegment.from_file(io.BytesIO(data), format="mp3")
    except Exception as e:
        raise ValueError(
            f"MP3 could not be decoded: {e}\n"
            "Please ensure ffmpeg is installed."
        ) from e

    channels = audio.channels
    samples = np.array(audio.get_array_of_samples())

    # pydub returns integer samples of sample_width bytes
    if audio.sample_width == 2:
        samples = samples.astype(np.float64) / 32768.0
    elif audio.sample_width == 4:
        samples = samples.astype(np.float64) / 2147483648.0
    else:
        samples = (samples.astype(np.float64) - 128) / 128.0

    if channels > 1:
        samples = samples.reshape(-1, channels)
        num_samples = samples.shape[0]
    else:
        num_samples = len(samples)

    return AudioFile(
        data=samples,
        sample_rate=audio.frame_rate,
        channels=channels,
        num_samples=num_samples,
        format_info={"format": "MP3", "subtype": "MPEG Layer 3"},
    )


def to_wav_bytes(
    data: np.ndarray,
    sample_rate: int,
    end: Optional[int] = None,
) -> bytes:
    """
    Encode audio as 16-bit PCM WAV.

    Args:
        data: Audio data (float, range -1.0 to 1.0)
        sample_rate: Sample rate in Hz
        end: Optional number of samples per channel to keep

    Returns:
        Complete WAV file as bytes
    """
    if data.ndim > 2:
        raise ValueError("Audio must be 1D or 2D")

    if not np.issubdtype(data.dtype, np.floating):
        raise ValueError("Audio data must be float")

    if end is not None and end > 0:
        data = data[:end]

    if np.any(np.abs(data) > 1.0):
        import warnings
        warnings.warn(
            "Audio data exceeds [-1.0, 1.0]. Clipping will be applied.",
            UserWarning
        )
        data = np.clip(data, -1.0, 1.0)

    buffer = io.BytesIO()
    sf.write(buffer, data, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


@dataclass
class WavInfo:
    """Header information of a WAV file."""
    channels: int
    sample_rate: int
    frames: int
    subtype: str


def read_wav_info(data: bytes) -> WavInfo:
    """
    Read the header of WAV bytes produced by an external decoder.

    Raises:
        ValueError: Not readable, or not 16-bit PCM
    """
    try:
        info = sf.info(io.BytesIO(data))
    except (RuntimeError, TypeError) as e:
        raise ValueError(f"Error reading returned wav\n{e}") from e

    if info.subtype != "PCM_16":
        raise ValueError(f"Error reading returned wav\nWrong bit depth found: {info.subtype}")

    return WavInfo(
        channels=info.channels,
        sample_rate=info.samplerate,
        frames=info.frames,
        subtype=info.subtype,
    )
