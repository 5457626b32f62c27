"""
Gemeinsame Fixtures für die Tests.
"""

import numpy as np
import pytest

from nus3audio_gui.core.audio_io import to_wav_bytes


def make_sine(num_samples: int = 1200, sample_rate: int = 12000, channels: int = 1) -> np.ndarray:
    """Sinuston mit halber Amplitude."""
    t = np.arange(num_samples) / sample_rate
    sine = 0.5 * np.sin(2 * np.pi * 440 * t)
    if channels == 1:
        return sine
    return np.column_stack([sine] * channels)


def make_wav(num_samples: int = 1200, sample_rate: int = 12000, channels: int = 1) -> bytes:
    """16-bit WAV-Datei als Bytes."""
    return to_wav_bytes(make_sine(num_samples, sample_rate, channels), sample_rate)


@pytest.fixture
def wav_bytes():
    """Kurze Mono-WAV mit 1200 Samples bei 12 kHz."""
    return make_wav()


@pytest.fixture
def wav_file(tmp_path, wav_bytes):
    path = tmp_path / "input.wav"
    path.write_bytes(wav_bytes)
    return path
