"""
Tests für die Signalvorbereitung vor dem Kodieren.
"""

import pytest
import numpy as np

from nus3audio_gui.core.signal_processing import (
    limit_channels,
    opus_sample_rate,
    prepare_for_lopus,
    resample_audio,
    scale_sample_position,
)


class TestOpusSampleRate:
    """Zuordnung auf die von Opus unterstützten Raten."""

    @pytest.mark.parametrize("rate,expected", [
        (7000, 8000),
        (8000, 8000),
        (11025, 12000),
        (12000, 12000),
        (22050, 24000),
        (32000, 48000),
        (44100, 48000),
        (96000, 48000),
    ])
    def test_mapping(self, rate, expected):
        assert opus_sample_rate(rate) == expected


class TestResampling:
    """Tests für Resampling-Funktionen."""

    def test_resample_same_rate(self):
        """Gleiche Rate gibt Kopie zurück."""
        data = np.random.randn(1000)
        result = resample_audio(data, 44100, 44100)

        np.testing.assert_array_equal(result, data)
        assert result is not data

    def test_resample_upsample(self):
        data = np.random.randn(44100)
        result = resample_audio(data, 44100, 48000)

        assert len(result) == 48000

    def test_resample_stereo(self):
        data = np.random.randn(22050, 2)
        result = resample_audio(data, 22050, 24000)

        assert result.shape == (24000, 2)

    def test_resample_preserves_frequency(self):
        """Resampling erhält Frequenzinhalt."""
        sr_orig = 44100
        sr_new = 48000

        t_orig = np.arange(sr_orig) / sr_orig
        sine = np.sin(2 * np.pi * 440 * t_orig)

        resampled = resample_audio(sine, sr_orig, sr_new)

        spectrum = np.abs(np.fft.rfft(resampled))
        freqs = np.fft.rfftfreq(len(resampled), 1 / sr_new)

        # Peak sollte bei ~440 Hz sein
        peak_freq = freqs[np.argmax(spectrum)]
        assert abs(peak_freq - 440) < 10


class TestChannelsAndPositions:
    def test_limit_channels(self):
        data = np.random.randn(100, 4)
        result = limit_channels(data)

        assert result.shape == (100, 2)
        np.testing.assert_array_equal(result, data[:, :2])

    def test_limit_channels_mono(self):
        data = np.random.randn(100)
        result = limit_channels(data)

        np.testing.assert_array_equal(result, data)
        assert result is not data

    def test_scale_sample_position(self):
        assert scale_sample_position(44100, 44100, 48000) == 48000
        assert scale_sample_position(1000, 24000, 12000) == 500
        assert scale_sample_position(123, 12000, 12000) == 123


class TestPrepareForLopus:
    def test_resamples_and_limits(self):
        data = np.random.randn(44100, 3) * 0.1
        prepared, rate = prepare_for_lopus(data, 44100)

        assert rate == 48000
        assert prepared.shape == (48000, 2)

    def test_supported_rate_unchanged(self):
        data = np.random.randn(1200) * 0.1
        prepared, rate = prepare_for_lopus(data, 12000)

        assert rate == 12000
        np.testing.assert_array_equal(prepared, data)
