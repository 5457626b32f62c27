"""
Project Module

The nus3audio container currently being edited, as a list of sounds.

Every sound keeps two representations:
- decoded audio (for playback, WAV export and re-encoding)
- encoded bytes in its container format (written back on save)

Encoded bytes are dropped whenever a change makes them stale and are
regenerated through VGAudioCli on demand.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from .cache import prepare_target_dir
from .codec import AudioExtension, DecodeError, EncodedAudio, EncodeError, EncodingType
from .audio_io import read_wav_info, to_wav_bytes
from .container import AudioEntry, Nus3audioFile, extension_of_encoded
from .signal_processing import prepare_for_lopus, scale_sample_position
from .tools import ToolError, Transcoder

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 12_000

STATUS_NOT_ENCODED = "Not yet encoded"
STATUS_NOT_DECODED = "Could not decode"
STATUS_EMPTY = "Empty"


def _safe_filename(name: str) -> str:
    """Sound name usable as a file name in the cache."""
    cleaned = re.sub(r'[\\/:*?"<>|\x00]', "_", name).strip()
    return cleaned or "sound"


class SoundItem:
    """
    A sound of the container.

    Attributes:
        name: Unique name of the sound (without extension)
        extension: Format inside the container
        audio: Decoded or imported audio, None if empty
        encoded: Bytes in the container format, None if not yet encoded
        loop_points: (start, end) in samples, None if not looping
        length_in_samples: Length per channel
        sample_rate: Sample rate in Hz
        channels: Number of channels
    """

    def __init__(self, name: str, extension: AudioExtension = AudioExtension.IDSP):
        self.name = name
        self.extension = extension
        self.audio: Optional[EncodedAudio] = None
        self.encoded: Optional[bytes] = None
        self.loop_points: Optional[tuple[int, int]] = None
        self.length_in_samples = 0
        self.sample_rate = DEFAULT_SAMPLE_RATE
        self.channels = 1

    def __repr__(self) -> str:
        return f"SoundItem({self.name!r}, {self.extension}, status={self.status!r})"

    @property
    def filename(self) -> str:
        return f"{self.name}.{self.extension}"

    @property
    def loop_end(self) -> Optional[int]:
        return self.loop_points[1] if self.loop_points else None

    @property
    def loop_points_seconds(self) -> Optional[tuple[float, float]]:
        if self.loop_points is None:
            return None
        start, end = self.loop_points
        return start / self.sample_rate, end / self.sample_rate

    @property
    def is_binary(self) -> bool:
        return self.audio is not None and self.audio.encoding is EncodingType.BIN

    @property
    def status(self) -> str:
        """Short state description, empty if the sound is complete."""
        if self.audio is not None:
            if self.is_binary:
                return "" if self.encoded is not None else STATUS_NOT_DECODED
            return "" if self.encoded is not None else STATUS_NOT_ENCODED
        if self.encoded is not None:
            return STATUS_NOT_DECODED
        return STATUS_EMPTY

    def set_audio(self, data: bytes, encoding: EncodingType):
        """
        Attach newly imported audio.

        Loop points and encoded bytes are reset. Decodable audio is
        decoded right away to learn its length and format.

        Raises:
            DecodeError: Audio could not be decoded
        """
        audio = EncodedAudio(data, encoding)
        if audio.can_be_decoded:
            decoded = audio.decode()
            self.length_in_samples = decoded.num_samples
            self.sample_rate = decoded.sample_rate
            self.channels = decoded.channels
        else:
            self.extension = AudioExtension.BIN
            self.length_in_samples = 0

        self.audio = audio
        self.encoded = None
        self.loop_points = None

    def set_binary(self, data: bytes):
        """Keep undecodable container data as-is."""
        self.audio = EncodedAudio(data, EncodingType.BIN)
        self.encoded = None
        self.extension = AudioExtension.BIN
        self.loop_points = None
        self.length_in_samples = 0

    def clear_encoded(self):
        self.encoded = None

    def wav_bytes(self, end: Optional[int] = None) -> bytes:
        """
        Audio of this sound as WAV.

        Args:
            end: Optional length in samples

        Raises:
            ValueError: Sound is empty
            DecodeError: Sound could not be decoded
        """
        if self.audio is None:
            if self.encoded is None:
                raise ValueError("Selected item is empty")
            raise ValueError("Selected item could not be decoded")
        return self.audio.to_wav(end)


class Project:
    """
    An open nus3audio file.

    Attributes:
        name: File name of the container
        path: Location of the container, None if never saved
        items: Sounds in container order
        modified: Whether there are unsaved changes
    """

    def __init__(self, transcoder: Transcoder, cache_dir: Path):
        self.transcoder = transcoder
        self.cache_dir = Path(cache_dir)
        self.name = ""
        self.path: Optional[Path] = None
        self.items: list[SoundItem] = []
        self.modified = False

    def __len__(self) -> int:
        return len(self.items)

    def _item(self, index: int) -> SoundItem:
        if not 0 <= index < len(self.items):
            raise IndexError(f"No sound at index {index}")
        return self.items[index]

    def _work_dir(self) -> Path:
        """Empty cache subdirectory for this container."""
        return prepare_target_dir(self.cache_dir / _safe_filename(self.name or "untitled"))

    def clear(self):
        """Remove all sounds. The project counts as unmodified."""
        self.items.clear()
        self.modified = False

    def new(self):
        """Start an empty, unsaved container."""
        self.clear()
        self.name = ""
        self.path = None

    def open(self, file_path: str | Path) -> list[tuple[str, str]]:
        """
        Load a container and decode all of its sounds.

        Sounds that cannot be decoded are kept as binary data.

        Returns:
            (sound name, reason) for every sound that could not be decoded

        Raises:
            FileNotFoundError: File does not exist
            Nus3audioError: File is not a valid container
        """
        path = Path(file_path)
        container = Nus3audioFile.read(path)

        self.clear()
        self.name = path.name
        self.path = path

        problems = []
        for entry in container.files:
            item = SoundItem(entry.name)
            if entry.data:
                reason = self._load_encoded(item, entry.data)
                if reason:
                    problems.append((entry.name, reason))
            self.items.append(item)

        logger.info("Opened %s with %d sounds", path, len(self.items))
        self.modified = False
        return problems

    def _load_encoded(self, item: SoundItem, data: bytes) -> Optional[str]:
        """
        Decode IDSP/LOPUS data into item through the external tools.

        Returns:
            None on success, otherwise why the data was kept as binary
        """
        try:
            extension = extension_of_encoded(data)
            src_file = self._work_dir() / f"{_safe_filename(item.name)}.{extension}"
            src_file.write_bytes(data)
            wav = self.transcoder.decode(src_file)
            info = read_wav_info(wav)
        except (ToolError, ValueError, OSError) as e:
            logger.warning(
                "Error decoding %s: %s\n"
                "  This is not fatal, the bytes have been loaded directly.",
                item.name, e,
            )
            item.set_binary(data)
            return str(e)

        item.audio = EncodedAudio(wav, EncodingType.WAV)
        item.encoded = bytes(data)
        item.extension = AudioExtension(extension)
        item.channels = info.channels
        item.sample_rate = info.sample_rate
        item.length_in_samples = info.frames
        item.loop_points = self.transcoder.loop_points(src_file)
        return None

    def add_item(self) -> int:
        """Append an empty IDSP sound and return its index."""
        item = SoundItem(f"new_sound_{len(self.items) + 1}")
        self.items.append(item)
        self.modified = True
        return len(self.items) - 1

    def remove(self, index: int):
        self._item(index)
        del self.items[index]
        self.modified = True

    def replace(self, index: int, file_path: str | Path):
        """
        Replace the audio of a sound with a file.

        IDSP and LOPUS files are decoded with the external tools, other
        files are imported by their extension.

        Raises:
            OSError: File could not be read
            DecodeError: File could not be decoded as audio
        """
        item = self._item(index)
        path = Path(file_path)
        data = path.read_bytes()
        suffix = path.suffix.lower().lstrip(".")

        if suffix in ("idsp", "lopus"):
            reason = self._load_encoded(item, data)
            if reason:
                # Kept as binary data, which is still a change
                self.modified = True
                raise DecodeError(reason)
        else:
            item.set_audio(data, EncodingType.from_extension(suffix))

        item.loop_points = self.transcoder.loop_points(path)
        self.modified = True
        logger.info("Replaced %s with %s", item.name, path)

    def set_properties(
        self,
        index: int,
        name: str,
        extension: AudioExtension,
        loop_points: Optional[tuple[int, int]],
    ) -> bool:
        """
        Change name, format and loop points of a sound.

        Encoded bytes are dropped if the format or the loop changes.

        Returns:
            True if anything was changed

        Raises:
            ValueError: Invalid name or loop points
        """
        item = self._item(index)
        name = name.strip()
        if not name:
            raise ValueError("Name must not be empty.")

        if extension is AudioExtension.BIN:
            loop_points = None

        if loop_points is not None:
            start, end = (int(v) for v in loop_points)
            if start < 0 or end < 0:
                raise ValueError("Loop points must be positive.")
            if start >= end:
                raise ValueError("Loop beginning must be placed before loop end.")
            loop_points = (start, end)

        if (item.name, item.extension, item.loop_points) == (name, extension, loop_points):
            return False

        if item.extension is not extension or item.loop_points != loop_points:
            item.clear_encoded()

        item.name = name
        item.extension = extension
        item.loop_points = loop_points
        self.modified = True
        return True

    def label_of(self, index: int) -> str:
        """Display text of a sound, with its status if incomplete."""
        item = self._item(index)
        status = item.status
        return f"{item.filename} ({status})" if status else item.filename

    def labels(self) -> list[str]:
        return [self.label_of(index) for index in range(len(self.items))]

    def encoded_bytes(self, index: int, extension: Optional[AudioExtension] = None) -> bytes:
        """
        Bytes of a sound in a container format.

        Already encoded bytes are reused. Otherwise the audio is written
        as WAV (cut at the loop end) and encoded with VGAudioCli. The
        result is kept if it matches the sound's own format.

        Raises:
            ValueError: Sound is empty
            EncodeError: Audio can't be brought into that format
            ToolError: VGAudioCli failed
        """
        item = self._item(index)
        extension = extension or item.extension

        if item.audio is None:
            raise ValueError("Audio of selected item is empty")

        if item.encoded is not None and extension is item.extension:
            logger.debug("Encoded audio already exists for %s, returning it", item.name)
            return item.encoded

        if item.is_binary:
            if extension is not AudioExtension.BIN:
                raise EncodeError("Item is not in bin format, but imported file is")
            logger.debug("%s is set to a binary file, returning it", item.name)
            return item.audio.data

        if extension is AudioExtension.BIN:
            raise EncodeError("Can't encode audio to bin, which is not a real encoding")

        logger.debug("Encoded audio does not already exist for %s, encoding it", item.name)
        try:
            audio = item.audio.decode()
        except DecodeError as e:
            raise EncodeError(f"Error decoding audio\n{e}") from e

        data = audio.data
        sample_rate = audio.sample_rate
        loop_points = item.loop_points
        if loop_points is not None:
            data = data[:loop_points[1]]

        if extension is AudioExtension.LOPUS:
            data, new_rate = prepare_for_lopus(data, sample_rate)
            if loop_points is not None:
                loop_points = (
                    scale_sample_position(loop_points[0], sample_rate, new_rate),
                    scale_sample_position(loop_points[1], sample_rate, new_rate),
                )
            sample_rate = new_rate

        dest_file = self._work_dir() / f"{_safe_filename(item.name)}.{extension}"
        src_file = dest_file.with_suffix(".wav")
        src_file.write_bytes(to_wav_bytes(data, sample_rate))

        encoded = self.transcoder.encode(src_file, dest_file, loop_points)
        logger.debug("Encoded %s to %s", src_file, dest_file)

        if extension is item.extension:
            item.encoded = encoded
        return encoded

    def save(self, file_path: Optional[str | Path] = None) -> list[tuple[str, str]]:
        """
        Write the container, encoding sounds where needed.

        Sounds that fail to encode are written empty.

        Args:
            file_path: Target, defaults to the current path. The suffix
                is always .nus3audio

        Returns:
            (sound name, reason) for every sound written empty

        Raises:
            ValueError: No path given and none set
            OSError: File could not be written
        """
        if file_path is None and self.path is None:
            raise ValueError("No path has been set to save.")
        target = Path(file_path if file_path is not None else self.path).with_suffix(".nus3audio")

        container = Nus3audioFile()
        problems = []
        for index, item in enumerate(self.items):
            try:
                data = self.encoded_bytes(index)
            except (ValueError, EncodeError, ToolError, OSError) as e:
                logger.warning("Writing %s empty: %s", item.name, e)
                problems.append((item.name, str(e)))
                data = b""
            container.files.append(AudioEntry(id=index, name=item.name, data=data))

        logger.info("Writing %s to %s", target.name, target)
        container.write(target)

        self.path = target
        self.name = target.name
        self.modified = False
        return problems

    def export_item(self, index: int, file_path: str | Path) -> Path:
        """
        Export one sound, the format follows the file suffix.

        .wav (or no suffix) exports decoded audio, .idsp/.lopus encode with
        VGAudioCli and anything else exports the raw binary data.

        Returns:
            Path that was written
        """
        item = self._item(index)
        path = Path(file_path)
        suffix = path.suffix.lower().lstrip(".")

        if not suffix:
            path = path.with_suffix(".wav")
            suffix = "wav"

        if suffix == "wav":
            data = item.wav_bytes()
        elif suffix in ("idsp", "lopus"):
            data = self.encoded_bytes(index, AudioExtension(suffix))
        else:
            data = self.encoded_bytes(index, AudioExtension.BIN)

        logger.info("Exporting %s to %s", item.name, path)
        path.write_bytes(data)
        return path

    def export_all(self, directory: str | Path) -> list[tuple[str, str]]:
        """
        Export every sound as name.wav into directory.

        Returns:
            (sound name, reason) for every skipped sound

        Raises:
            OSError: A file could not be written
        """
        directory = Path(directory)
        skipped = []
        for item in self.items:
            try:
                data = item.wav_bytes()
            except (ValueError, DecodeError) as e:
                skipped.append((item.name, str(e)))
                continue
            (directory / f"{_safe_filename(item.name)}.wav").write_bytes(data)
        return skipped
