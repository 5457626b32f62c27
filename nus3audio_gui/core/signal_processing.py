"""
Signal preparation for the encoder path.

Technical assumptions:
- Resampling uses scipy.signal.resample_poly for anti-aliasing
- LOPUS only supports 8, 12, 16, 24 and 48 kHz
- All operations work on copies, original data remains unchanged
"""

import numpy as np
from scipy import signal


OPUS_SAMPLE_RATES = (8_000, 12_000, 16_000, 24_000, 48_000)


def opus_sample_rate(sample_rate: int) -> int:
    """
    Smallest Opus sample rate that is not below the given rate.

    Rates above 24 kHz all map to 48 kHz.
    """
    for rate in OPUS_SAMPLE_RATES:
        if sample_rate <= rate:
            return rate
    return OPUS_SAMPLE_RATES[-1]


def resample_audio(
    data: np.ndarray,
    original_sr: int,
    target_sr: int,
) -> np.ndarray:
    """
    Resample audio data to new sample rate.

    Args:
        data: Audio data (1D or 2D)
        original_sr: Original sample rate
        target_sr: Target sample rate

    Returns:
        Resampled audio data (same dimensionality)
    """
    if original_sr == target_sr:
        return data.copy()

    gcd = np.gcd(original_sr, target_sr)
    up = target_sr // gcd
    down = original_sr // gcd

    if data.ndim == 1:
        return signal.resample_poly(data, up, down).astype(data.dtype)

    # Resample each channel separately
    channels = [signal.resample_poly(data[:, ch], up, down) for ch in range(data.shape[1])]
    return np.column_stack(channels).astype(data.dtype)


def limit_channels(data: np.ndarray, max_channels: int = 2) -> np.ndarray:
    """Drop channels beyond max_channels."""
    if data.ndim == 1 or data.shape[1] <= max_channels:
        return data.copy()
    return data[:, :max_channels].copy()


def scale_sample_position(position: int, original_sr: int, target_sr: int) -> int:
    """Map a sample index to the equivalent index at another sample rate."""
    if original_sr == target_sr:
        return position
    return int(round(position * target_sr / original_sr))


def prepare_for_lopus(
    data: np.ndarray,
    sample_rate: int,
) -> tuple[np.ndarray, int]:
    """
    Bring audio into a shape the LOPUS encoder accepts.

    Returns:
        (audio data, new sample rate)
    """
    target_sr = opus_sample_rate(sample_rate)
    prepared = limit_channels(data)
    return resample_audio(prepared, sample_rate, target_sr), target_sr
