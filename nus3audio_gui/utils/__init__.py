"""
Utility module for the nus3audio GUI.

Contains helper functions used by both Core and GUI.
"""

from .formatting import (
    human_readable_size,
    format_time,
    samples_to_time_str,
    format_sample_rate,
    format_channels,
)

__all__ = [
    "human_readable_size",
    "format_time",
    "samples_to_time_str",
    "format_sample_rate",
    "format_channels",
]
