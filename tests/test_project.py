"""
Tests für das Projektmodell.

VGAudioCli und vgmstream werden durch einen Fake-Transcoder ersetzt, der
WAV-Daten zurückgibt und Kodieraufträge aufzeichnet.
"""

from pathlib import Path

import pytest

from nus3audio_gui.core.audio_io import read_wav_info
from nus3audio_gui.core.codec import AudioExtension, DecodeError, EncodeError, EncodingType
from nus3audio_gui.core.container import AudioEntry, Nus3audioFile
from nus3audio_gui.core.project import Project, SoundItem
from nus3audio_gui.core.tools import ToolError

from conftest import make_wav


class FakeTranscoder:
    """Transcoder ohne externe Programme."""

    def __init__(self):
        self.decoded: list[Path] = []
        self.encoded: list[tuple[Path, Path, object]] = []
        self.loop = None
        self.fail_decode = False
        self.wav = make_wav(1200, 12000)

    def decode(self, src_file):
        self.decoded.append(Path(src_file))
        if self.fail_decode:
            raise ToolError("decoder failed")
        return self.wav

    def encode(self, src_file, dest_file, loop_points=None):
        self.encoded.append((Path(src_file), Path(dest_file), loop_points))
        info = read_wav_info(Path(src_file).read_bytes())
        if Path(dest_file).suffix == ".idsp":
            return b"IDSP" + info.frames.to_bytes(4, "little")
        return b"\x01\x00\x00\x80" + info.frames.to_bytes(4, "little")

    def loop_points(self, src_file):
        return self.loop


@pytest.fixture
def transcoder():
    return FakeTranscoder()


@pytest.fixture
def project(tmp_path, transcoder):
    return Project(transcoder, tmp_path / "cache")


@pytest.fixture
def loaded(project, wav_file):
    """Projekt mit einem importierten WAV-Sound."""
    index = project.add_item()
    project.replace(index, wav_file)
    return project


class TestSoundItem:
    def test_empty(self):
        item = SoundItem("sound")
        assert item.filename == "sound.idsp"
        assert item.status == "Empty"
        assert item.loop_points_seconds is None

        with pytest.raises(ValueError, match="empty"):
            item.wav_bytes()

    def test_set_audio(self, wav_bytes):
        item = SoundItem("sound")
        item.set_audio(wav_bytes, EncodingType.WAV)

        assert item.length_in_samples == 1200
        assert item.sample_rate == 12000
        assert item.status == "Not yet encoded"

    def test_set_audio_bin(self):
        """Nicht dekodierbare Daten machen den Sound binär."""
        item = SoundItem("sound")
        item.set_audio(b"\x00\x01\x02", EncodingType.BIN)

        assert item.is_binary
        assert item.extension is AudioExtension.BIN

    def test_loop_points_seconds(self, wav_bytes):
        item = SoundItem("sound")
        item.set_audio(wav_bytes, EncodingType.WAV)
        item.loop_points = (6000, 12000)

        assert item.loop_points_seconds == (0.5, 1.0)
        assert item.loop_end == 12000


class TestEditing:
    """Hinzufügen, Entfernen, Ersetzen."""

    def test_add_item(self, project):
        assert project.add_item() == 0
        assert project.add_item() == 1

        assert project.modified
        assert project.labels() == ["new_sound_1.idsp (Empty)", "new_sound_2.idsp (Empty)"]

    def test_remove(self, project):
        project.add_item()
        project.add_item()
        project.modified = False

        project.remove(0)

        assert [item.name for item in project.items] == ["new_sound_2"]
        assert project.modified

    def test_remove_invalid(self, project):
        with pytest.raises(IndexError):
            project.remove(0)

    def test_replace_with_wav(self, loaded):
        item = loaded.items[0]

        assert item.audio.encoding is EncodingType.WAV
        assert item.length_in_samples == 1200
        assert loaded.label_of(0) == "new_sound_1.idsp (Not yet encoded)"

    def test_replace_reads_loop_points(self, project, transcoder, wav_file):
        transcoder.loop = (100, 1000)
        project.replace(project.add_item(), wav_file)

        assert project.items[0].loop_points == (100, 1000)

    def test_replace_with_idsp(self, project, transcoder, tmp_path):
        source = tmp_path / "music.idsp"
        source.write_bytes(b"IDSP" + b"\x00" * 32)

        project.replace(project.add_item(), source)
        item = project.items[0]

        assert item.encoded == source.read_bytes()
        assert item.extension is AudioExtension.IDSP
        assert item.status == ""
        assert len(transcoder.decoded) == 1

    def test_replace_with_lopus_changes_extension(self, project, tmp_path):
        source = tmp_path / "music.lopus"
        source.write_bytes(b"\x01\x00\x00\x80" + b"\x00" * 32)

        project.replace(project.add_item(), source)
        assert project.items[0].extension is AudioExtension.LOPUS

    def test_replace_decode_failure(self, project, transcoder, tmp_path):
        transcoder.fail_decode = True
        source = tmp_path / "broken.idsp"
        source.write_bytes(b"IDSP" + b"\x00" * 8)
        index = project.add_item()
        project.modified = False

        with pytest.raises(DecodeError):
            project.replace(index, source)

        assert project.items[0].is_binary
        assert project.modified

    def test_replace_missing_file(self, project, tmp_path):
        with pytest.raises(OSError):
            project.replace(project.add_item(), tmp_path / "missing.wav")


class TestProperties:
    """Tests für set_properties."""

    def test_rename(self, loaded):
        assert loaded.set_properties(0, " intro ", AudioExtension.IDSP, None)
        assert loaded.items[0].name == "intro"

    def test_unchanged(self, loaded):
        loaded.modified = False
        assert not loaded.set_properties(0, "new_sound_1", AudioExtension.IDSP, None)
        assert not loaded.modified

    def test_empty_name(self, loaded):
        with pytest.raises(ValueError, match="empty"):
            loaded.set_properties(0, "  ", AudioExtension.IDSP, None)

    def test_loop_order(self, loaded):
        with pytest.raises(ValueError, match="before loop end"):
            loaded.set_properties(0, "a", AudioExtension.IDSP, (500, 500))

    def test_negative_loop(self, loaded):
        with pytest.raises(ValueError, match="positive"):
            loaded.set_properties(0, "a", AudioExtension.IDSP, (-1, 500))

    def test_loop_change_clears_encoded(self, loaded):
        loaded.encoded_bytes(0)
        assert loaded.items[0].encoded is not None

        loaded.set_properties(0, "new_sound_1", AudioExtension.IDSP, (0, 600))
        assert loaded.items[0].encoded is None

    def test_rename_keeps_encoded(self, loaded):
        loaded.encoded_bytes(0)
        loaded.set_properties(0, "renamed", AudioExtension.IDSP, None)
        assert loaded.items[0].encoded is not None

    def test_bin_drops_loop(self, loaded):
        loaded.set_properties(0, "a", AudioExtension.BIN, (0, 600))
        assert loaded.items[0].loop_points is None


class TestEncoding:
    """Tests für encoded_bytes."""

    def test_encode_idsp(self, loaded, transcoder):
        data = loaded.encoded_bytes(0)

        assert data.startswith(b"IDSP")
        assert loaded.items[0].encoded == data
        assert loaded.label_of(0) == "new_sound_1.idsp"

    def test_encoded_bytes_reused(self, loaded, transcoder):
        loaded.encoded_bytes(0)
        loaded.encoded_bytes(0)
        assert len(transcoder.encoded) == 1

    def test_loop_end_truncates(self, loaded, transcoder):
        loaded.set_properties(0, "looped", AudioExtension.IDSP, (100, 800))
        loaded.encoded_bytes(0)

        src, dest, loop = transcoder.encoded[0]
        assert dest.name == "looped.idsp"
        assert loop == (100, 800)
        assert read_wav_info(src.read_bytes()).frames == 800

    def test_other_extension_not_cached(self, loaded, transcoder):
        data = loaded.encoded_bytes(0, AudioExtension.LOPUS)

        assert not data.startswith(b"IDSP")
        assert loaded.items[0].encoded is None

    def test_lopus_resamples(self, project, transcoder, tmp_path):
        source = tmp_path / "cd.wav"
        source.write_bytes(make_wav(44100, 44100))
        index = project.add_item()
        project.replace(index, source)
        project.set_properties(index, "cd", AudioExtension.LOPUS, (0, 44100))

        project.encoded_bytes(index)

        src, dest, loop = transcoder.encoded[0]
        info = read_wav_info(src.read_bytes())
        assert info.sample_rate == 48000
        assert info.frames == 48000
        assert loop == (0, 48000)

    def test_empty_item(self, project):
        project.add_item()
        with pytest.raises(ValueError, match="empty"):
            project.encoded_bytes(0)

    def test_binary_item(self, project):
        index = project.add_item()
        project.items[index].set_binary(b"\x00\x11\x22")

        assert project.encoded_bytes(index, AudioExtension.BIN) == b"\x00\x11\x22"
        with pytest.raises(EncodeError):
            project.encoded_bytes(index, AudioExtension.IDSP)

    def test_audio_to_bin(self, loaded):
        with pytest.raises(EncodeError):
            loaded.encoded_bytes(0, AudioExtension.BIN)


class TestSaveAndOpen:
    """Speichern und Laden von Containern."""

    def test_round_trip(self, loaded, transcoder, tmp_path):
        loaded.add_item()
        problems = loaded.save(tmp_path / "out")

        assert loaded.path == tmp_path / "out.nus3audio"
        assert loaded.name == "out.nus3audio"
        assert not loaded.modified
        assert [name for name, _ in problems] == ["new_sound_2"]

        reopened = Project(transcoder, tmp_path / "cache2")
        assert reopened.open(tmp_path / "out.nus3audio") == []

        assert reopened.labels() == ["new_sound_1.idsp", "new_sound_2.idsp (Empty)"]
        assert reopened.items[0].length_in_samples == 1200
        assert reopened.name == "out.nus3audio"

    def test_save_without_path(self, project):
        with pytest.raises(ValueError, match="No path"):
            project.save()

    def test_save_to_current_path(self, loaded, tmp_path):
        loaded.save(tmp_path / "first.nus3audio")
        loaded.set_properties(0, "renamed", AudioExtension.IDSP, None)

        loaded.save()

        container = Nus3audioFile.read(tmp_path / "first.nus3audio")
        assert container.files[0].name == "renamed"

    def test_open_with_undecodable_sound(self, project, transcoder, tmp_path):
        path = tmp_path / "in.nus3audio"
        Nus3audioFile(files=[
            AudioEntry(0, "good", b"IDSP" + b"\x00" * 16),
            AudioEntry(1, "bad", b"\x01\x00\x00\x80" + b"\x00" * 16),
        ]).write(path)

        decode = transcoder.decode

        def selective_decode(src_file):
            if Path(src_file).suffix == ".lopus":
                raise ToolError("unsupported")
            return decode(src_file)

        transcoder.decode = selective_decode
        problems = project.open(path)

        assert [name for name, _ in problems] == ["bad"]
        assert project.items[1].is_binary
        assert project.items[1].extension is AudioExtension.BIN
        assert not project.modified

    def test_binary_sound_saved_unchanged(self, project, transcoder, tmp_path):
        transcoder.fail_decode = True
        path = tmp_path / "in.nus3audio"
        Nus3audioFile(files=[AudioEntry(0, "raw", b"IDSP-raw-bytes")]).write(path)
        project.open(path)

        project.save(tmp_path / "out.nus3audio")

        assert Nus3audioFile.read(tmp_path / "out.nus3audio").files[0].data == b"IDSP-raw-bytes"

    def test_open_missing(self, project, tmp_path):
        with pytest.raises(FileNotFoundError):
            project.open(tmp_path / "missing.nus3audio")

    def test_new(self, loaded, tmp_path):
        loaded.save(tmp_path / "x.nus3audio")
        loaded.new()

        assert loaded.items == []
        assert loaded.path is None
        assert loaded.name == ""
        assert not loaded.modified


class TestExport:
    """Export einzelner und aller Sounds."""

    def test_export_wav(self, loaded, tmp_path):
        path = loaded.export_item(0, tmp_path / "sound.wav")
        assert read_wav_info(path.read_bytes()).frames == 1200

    def test_export_without_suffix(self, loaded, tmp_path):
        path = loaded.export_item(0, tmp_path / "sound")
        assert path == tmp_path / "sound.wav"
        assert path.exists()

    def test_export_idsp(self, loaded, tmp_path):
        path = loaded.export_item(0, tmp_path / "sound.idsp")
        assert path.read_bytes().startswith(b"IDSP")

    def test_export_empty(self, project, tmp_path):
        project.add_item()
        with pytest.raises(ValueError):
            project.export_item(0, tmp_path / "sound.wav")

    def test_export_all(self, loaded, tmp_path):
        loaded.add_item()
        target = tmp_path / "export"
        target.mkdir()

        skipped = loaded.export_all(target)

        assert [name for name, _ in skipped] == ["new_sound_2"]
        assert [p.name for p in target.iterdir()] == ["new_sound_1.wav"]
