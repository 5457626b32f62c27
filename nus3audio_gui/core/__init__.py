"""
Core module - fully testable without GUI dependencies.

This module contains all editing logic:
- nus3audio container reading/writing
- Decoding/encoding of common audio formats
- VGAudioCli / vgmstream orchestration
- Settings, cache and playback
"""

from .container import AudioEntry, Nus3audioFile, Nus3audioError, extension_of_encoded
from .codec import AudioExtension, EncodedAudio, EncodingType, DecodeError, EncodeError
from .tools import ToolError, Transcoder, VGAudioCli, Vgmstream, default_runtime
from .settings import Settings
from .project import Project, SoundItem
from .playback import Player, PlaybackError, PlaybackState

__all__ = [
    "AudioEntry",
    "Nus3audioFile",
    "Nus3audioError",
    "extension_of_encoded",
    "AudioExtension",
    "EncodedAudio",
    "EncodingType",
    "DecodeError",
    "EncodeError",
    "ToolError",
    "Transcoder",
    "VGAudioCli",
    "Vgmstream",
    "default_runtime",
    "Settings",
    "Project",
    "SoundItem",
    "Player",
    "PlaybackError",
    "PlaybackState",
]
