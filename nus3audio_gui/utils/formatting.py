"""
Formatting functions for display.

Converts numeric values into readable strings.
"""


def human_readable_size(num_bytes: int) -> str:
    """
    Format a data size.

    Args:
        num_bytes: Size in bytes

    Returns:
        Formatted string (e.g. "512 bytes", "1.5 KB", "2.25 MB")
    """
    if num_bytes < 1000:
        return f"{num_bytes} bytes"

    kilobytes = num_bytes / 1000
    if kilobytes < 1000:
        return f"{kilobytes:g} KB"

    # This is as high as we go
    return f"{kilobytes / 1000:g} MB"


def format_time(seconds: float, show_ms: bool = True) -> str:
    """
    Format time.

    Args:
        seconds: Time in seconds
        show_ms: Show milliseconds

    Returns:
        Formatted string (e.g. "1:23.456" or "1:23")
    """
    if seconds < 0:
        sign = "-"
        seconds = abs(seconds)
    else:
        sign = ""

    minutes = int(seconds // 60)
    secs = seconds % 60

    if show_ms:
        return f"{sign}{minutes}:{secs:06.3f}"
    else:
        return f"{sign}{minutes}:{int(secs):02d}"


def samples_to_time_str(
    samples: int,
    sample_rate: int,
    show_samples: bool = True,
) -> str:
    """
    Convert samples to a time string, optionally with the sample count.

    Returns:
        Formatted string (e.g. "1:23.456 (65,432 samples)")
    """
    time_str = format_time(samples / sample_rate)

    if show_samples:
        return f"{time_str} ({samples:,} samples)"
    return time_str


def format_sample_rate(sr: int) -> str:
    """
    Format sample rate.

    Returns:
        Formatted string (e.g. "44.1 kHz" or "48 kHz")
    """
    if sr % 1000 == 0:
        return f"{sr // 1000} kHz"
    else:
        return f"{sr / 1000:.1f} kHz"


def format_channels(num_channels: int) -> str:
    """
    Format channel count.

    Returns:
        "Mono", "Stereo" or "X channels"
    """
    if num_channels == 1:
        return "Mono"
    elif num_channels == 2:
        return "Stereo"
    else:
        return f"{num_channels} channels"
