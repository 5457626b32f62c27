"""
Tests für Audio I/O Modul.

Testet Dekodieren und WAV-Erzeugung im Speicher ohne GUI.
"""

import io

import pytest
import numpy as np
import soundfile as sf

from nus3audio_gui.core.audio_io import (
    AudioFile,
    decode_audio,
    read_wav_info,
    to_wav_bytes,
)

from conftest import make_sine, make_wav


class TestAudioFile:
    """Tests für AudioFile Dataclass."""

    def test_mono_audio_file(self):
        """Test AudioFile mit Mono-Daten."""
        data = np.random.randn(44100).astype(np.float64)
        audio = AudioFile(data=data, sample_rate=44100, channels=1, num_samples=44100)

        assert audio.channels == 1
        assert audio.duration_seconds == 1.0
        assert len(audio.get_channel(0)) == 44100
        assert audio.frames().shape == (44100, 1)

    def test_stereo_audio_file(self):
        """Test AudioFile mit Stereo-Daten."""
        data = np.random.randn(44100, 2).astype(np.float64)
        audio = AudioFile(data=data, sample_rate=44100, channels=2, num_samples=44100)

        np.testing.assert_array_equal(audio.get_channel(1), data[:, 1])
        assert audio.frames() is data

    def test_invalid_channel(self):
        audio = AudioFile(data=np.zeros(10), sample_rate=10, channels=1, num_samples=10)
        with pytest.raises(ValueError):
            audio.get_channel(1)


class TestWavBytes:
    """Tests für WAV-Erzeugung."""

    def test_mono_round_trip(self):
        wav = to_wav_bytes(make_sine(1200, 12000), 12000)
        audio = decode_audio(wav, "wav")

        assert audio.sample_rate == 12000
        assert audio.channels == 1
        assert audio.num_samples == 1200
        assert audio.format_info["subtype"] == "PCM_16"

    def test_stereo(self):
        audio = decode_audio(make_wav(500, 48000, channels=2), "wav")
        assert audio.channels == 2
        assert audio.data.shape == (500, 2)

    def test_end_truncates(self):
        """end kürzt auf die angegebene Sample-Anzahl."""
        wav = to_wav_bytes(make_sine(1200, 12000), 12000, end=300)
        assert decode_audio(wav, "wav").num_samples == 300

    def test_clipping_warning(self):
        data = np.array([0.0, 1.5, -2.0])
        with pytest.warns(UserWarning, match="Clipping"):
            wav = to_wav_bytes(data, 8000)

        audio = decode_audio(wav, "wav")
        assert np.max(np.abs(audio.data)) <= 1.0

    def test_integer_data_rejected(self):
        with pytest.raises(ValueError):
            to_wav_bytes(np.zeros(10, dtype=np.int16), 8000)


class TestDecodeAudio:
    """Tests für das Dekodieren gängiger Formate."""

    def test_flac(self):
        buffer = io.BytesIO()
        sf.write(buffer, make_sine(800, 16000), 16000, format="FLAC")

        audio = decode_audio(buffer.getvalue(), "flac")
        assert audio.sample_rate == 16000
        assert audio.num_samples == 800

    def test_unsupported_encoding(self):
        with pytest.raises(ValueError, match="Unsupported"):
            decode_audio(b"data", "aac")

    def test_garbage(self):
        with pytest.raises(ValueError):
            decode_audio(b"this is not audio at all", "wav")


class TestReadWavInfo:
    """Tests für die Prüfung von Decoder-Ausgaben."""

    def test_pcm16(self):
        info = read_wav_info(make_wav(1200, 12000, channels=2))

        assert info.channels == 2
        assert info.sample_rate == 12000
        assert info.frames == 1200

    def test_wrong_bit_depth(self):
        buffer = io.BytesIO()
        sf.write(buffer, make_sine(100, 8000), 8000, format="WAV", subtype="PCM_24")

        with pytest.raises(ValueError, match="Wrong bit depth"):
            read_wav_info(buffer.getvalue())

    def test_not_a_wav(self):
        with pytest.raises(ValueError, match="Error reading returned wav"):
            read_wav_info(b"\x00" * 16)
