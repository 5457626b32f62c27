"""
nus3audio Container Module

Reads and writes nus3audio sound containers without touching the payloads.

Layout (all integers little-endian u32):
- "NUS3" + size of everything that follows
- "AUDIINDX" + 4 + number of entries
- "TNID" ids, "NMOF" absolute name offsets, "ADOF" (offset, size) pairs
- "TNNM" NUL-terminated names
- "JUNK" padding so that the PACK payload starts 0x10-aligned
- "PACK" payloads, each aligned to 0x10

Payloads are opaque here. Decoding IDSP/LOPUS is done by external tools.
"""

from dataclasses import dataclass, field
from pathlib import Path
import struct


class Nus3audioError(ValueError):
    """Raised when bytes are not a valid nus3audio container."""


ALIGNMENT = 0x10

_U32 = struct.Struct("<I")


@dataclass
class AudioEntry:
    """
    A single sound inside a container.

    Attributes:
        id: Numeric id from the TNID section
        name: Sound name without extension
        data: Encoded payload (IDSP, LOPUS or arbitrary bytes)
    """
    id: int
    name: str
    data: bytes = b""

    def filename(self) -> str:
        """Name with the extension matching the payload magic."""
        magic = self.data[:4]
        if magic == b"IDSP":
            return f"{self.name}.idsp"
        elif magic == b"OPUS":
            return f"{self.name}.lopus"
        return f"{self.name}.bin"


def extension_of_encoded(data: bytes) -> str:
    """
    Guess the in-container extension of an encoded payload.

    VGAudioCli writes LOPUS files without the "OPUS" header, so anything
    that is not IDSP is treated as LOPUS.

    Raises:
        ValueError: Payload shorter than the 4 byte magic
    """
    if len(data) < 4:
        raise ValueError("Not a valid file")
    if data[:4] == b"IDSP":
        return "idsp"
    return "lopus"


def _padding(offset: int) -> int:
    """Bytes needed so that offset + 8 lands on an ALIGNMENT boundary."""
    return (ALIGNMENT + 8 - offset % ALIGNMENT) % ALIGNMENT


def _align(value: int) -> int:
    return (value + ALIGNMENT - 1) // ALIGNMENT * ALIGNMENT


@dataclass
class Nus3audioFile:
    """In-memory nus3audio container."""
    files: list[AudioEntry] = field(default_factory=list)

    @classmethod
    def read(cls, file_path: str | Path) -> "Nus3audioFile":
        """
        Load a container from disk.

        Raises:
            FileNotFoundError: File does not exist
            Nus3audioError: File is not a valid container
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"nus3audio file not found: {path}")
        return cls.from_bytes(path.read_bytes())

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Nus3audioFile":
        """Parse a container from raw bytes."""
        reader = _Reader(raw)

        reader.expect(b"NUS3")
        reader.u32()
        reader.expect(b"AUDIINDX")
        reader.u32()
        count = reader.u32()

        sections: dict[bytes, tuple[int, int]] = {}
        while reader.remaining() >= 8:
            tag = reader.take(4)
            size = reader.u32()
            start = reader.pos
            if tag == b"PACK":
                # Payload ranges are checked per entry, a short final pad is fine
                sections[tag] = (start, min(size, reader.remaining()))
                break
            if size > reader.remaining():
                raise Nus3audioError(f"Section {tag!r} exceeds file size")
            sections[tag] = (start, size)
            reader.pos = start + size

        for required in (b"TNID", b"NMOF", b"ADOF"):
            if required not in sections:
                raise Nus3audioError(f"Missing {required.decode()} section")

        ids = reader.u32_array(sections[b"TNID"], count)
        name_offsets = reader.u32_array(sections[b"NMOF"], count)
        locations = reader.u32_array(sections[b"ADOF"], count * 2)

        files = []
        for index in range(count):
            offset = locations[index * 2]
            size = locations[index * 2 + 1]
            if offset + size > len(raw):
                raise Nus3audioError(f"Data of entry {index} is out of range")
            files.append(AudioEntry(
                id=ids[index],
                name=reader.c_string(name_offsets[index]),
                data=bytes(raw[offset:offset + size]),
            ))

        return cls(files=files)

    def to_bytes(self) -> bytes:
        """Serialize the container."""
        count = len(self.files)
        names = [entry.name.encode("utf-8") for entry in self.files]

        header_size = 8 + 16
        tnid_size = 8 + 4 * count
        nmof_size = 8 + 4 * count
        adof_size = 8 + 8 * count
        string_start = header_size + tnid_size + nmof_size + adof_size + 8
        string_size = sum(len(name) + 1 for name in names)

        junk_pad = _padding(string_start + string_size + 8)
        pack_start = string_start + string_size + 8 + junk_pad + 8

        # Identical payloads are stored once
        payloads: list[bytes] = []
        payload_offsets: dict[bytes, int] = {}
        locations = []
        pack_size = 0
        for entry in self.files:
            data = bytes(entry.data)
            if data not in payload_offsets:
                payload_offsets[data] = pack_start + pack_size
                payloads.append(data)
                pack_size += _align(len(data))
            locations.append((payload_offsets[data], len(data)))

        out = bytearray()
        out += b"NUS3" + _U32.pack(pack_start + pack_size - 8)
        out += b"AUDIINDX" + _U32.pack(4) + _U32.pack(count)

        out += b"TNID" + _U32.pack(4 * count)
        for entry in self.files:
            out += _U32.pack(entry.id)

        out += b"NMOF" + _U32.pack(4 * count)
        offset = string_start
        for name in names:
            out += _U32.pack(offset)
            offset += len(name) + 1

        out += b"ADOF" + _U32.pack(8 * count)
        for data_offset, data_size in locations:
            out += _U32.pack(data_offset) + _U32.pack(data_size)

        out += b"TNNM" + _U32.pack(string_size)
        for name in names:
            out += name + b"\x00"

        out += b"JUNK" + _U32.pack(junk_pad) + b"\x00" * junk_pad

        out += b"PACK" + _U32.pack(pack_size)
        for data in payloads:
            out += data + b"\x00" * (_align(len(data)) - len(data))

        return bytes(out)

    def write(self, file_path: str | Path) -> None:
        """Write the container to disk."""
        Path(file_path).write_bytes(self.to_bytes())


class _Reader:
    """Bounds-checked cursor over container bytes."""

    def __init__(self, raw: bytes):
        self.raw = raw
        self.pos = 0

    def remaining(self) -> int:
        return len(self.raw) - self.pos

    def take(self, size: int) -> bytes:
        if size > self.remaining():
            raise Nus3audioError("Unexpected end of file")
        chunk = self.raw[self.pos:self.pos + size]
        self.pos += size
        return bytes(chunk)

    def expect(self, magic: bytes):
        found = self.take(len(magic))
        if found != magic:
            raise Nus3audioError(f"Expected {magic.decode()}, found {found!r}")

    def u32(self) -> int:
        return _U32.unpack(self.take(4))[0]

    def u32_array(self, section: tuple[int, int], count: int) -> list[int]:
        start, size = section
        if size < count * 4:
            raise Nus3audioError("Section too small for entry count")
        return list(struct.unpack_from(f"<{count}I", self.raw, start))

    def c_string(self, offset: int) -> str:
        if offset >= len(self.raw):
            raise Nus3audioError("Name offset is out of range")
        end = self.raw.find(b"\x00", offset)
        if end < 0:
            raise Nus3audioError("Unterminated name")
        return self.raw[offset:end].decode("utf-8", errors="replace")
