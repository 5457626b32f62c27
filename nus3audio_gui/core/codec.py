"""
Codec abstraction.

The GUI and the user should not have to care which decoder or encoder
handles a sound. Common formats are decoded in-process, IDSP/LOPUS go
through the external tools (see tools.py).
"""

from enum import Enum
import logging
from typing import Optional

from .audio_io import AudioFile, decode_audio, to_wav_bytes
from ..utils.formatting import human_readable_size

logger = logging.getLogger(__name__)


class DecodeError(Exception):
    """Audio could not be decoded."""


class EncodeError(Exception):
    """Audio could not be encoded."""


class EncodingType(Enum):
    """Encoded file types that can be imported."""
    OGG = "ogg"
    FLAC = "flac"
    WAV = "wav"
    MP3 = "mp3"
    # Data that could or should not be read as audio
    BIN = "bin"

    @classmethod
    def from_extension(cls, extension: str) -> "EncodingType":
        """Encoding for a file extension (with or without dot), BIN if unknown."""
        extension = extension.lower().lstrip(".")
        for encoding in cls:
            if encoding.value == extension and encoding is not cls.BIN:
                return encoding
        return cls.BIN

    @property
    def can_be_decoded(self) -> bool:
        """
        Whether an encoding of this type should be usable.

        This does not mean decoding will succeed.
        """
        return self is not EncodingType.BIN


class AudioExtension(Enum):
    """Formats of sounds inside a nus3audio container."""
    IDSP = "idsp"
    LOPUS = "lopus"
    BIN = "bin"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, value: str) -> "AudioExtension":
        return cls(value.lower().lstrip("."))


class EncodedAudio:
    """
    An encoded file together with its lazily decoded PCM.

    Channel count and sample rate are only known after decoding.
    """

    def __init__(self, data: bytes, encoding: EncodingType):
        self.data = bytes(data)
        self.encoding = encoding
        self._decoded: Optional[AudioFile] = None

    def __repr__(self) -> str:
        return f"EncodedAudio({self.encoding.value}, {human_readable_size(len(self.data))})"

    @property
    def can_be_decoded(self) -> bool:
        return self.encoding.can_be_decoded

    @property
    def channels(self) -> Optional[int]:
        return self._decoded.channels if self._decoded else None

    @property
    def sample_rate(self) -> Optional[int]:
        return self._decoded.sample_rate if self._decoded else None

    def decode(self) -> AudioFile:
        """
        Decode to PCM, caching the result.

        Raises:
            DecodeError: BIN data or undecodable audio
        """
        if self._decoded is not None:
            return self._decoded

        if not self.can_be_decoded:
            raise DecodeError("Can't decode a bin, which is not a real encoding")

        try:
            self._decoded = decode_audio(self.data, self.encoding.value)
        except ValueError as e:
            raise DecodeError(str(e)) from e

        return self._decoded

    def to_wav(self, end: Optional[int] = None) -> bytes:
        """
        Decode and convert to 16-bit WAV.

        Args:
            end: Optional length in samples (per channel) to keep
        """
        audio = self.decode()
        wav = to_wav_bytes(audio.data, audio.sample_rate, end)
        logger.debug("Got wav file from raw audio (wav size is %s)", human_readable_size(len(wav)))
        return wav

    def encode(self, encoding: EncodingType) -> bytes:
        """
        Convert this file to another in-process encoding.

        Only WAV output and BIN passthrough are supported.

        Raises:
            EncodeError: Target encoding not supported for this file
        """
        if encoding is EncodingType.BIN:
            if self.encoding is EncodingType.BIN:
                return self.data
            raise EncodeError("Can't encode to bin, which is not a real encoding")

        if encoding is EncodingType.WAV:
            try:
                return self.to_wav()
            except DecodeError as e:
                raise EncodeError(f"Error decoding: {e}") from e

        raise EncodeError(f"Encoding to {encoding.value} is not supported")
