"""
Persistent settings.

Stored with QSettings in INI format, so the file is readable and the core
does not need a running QApplication.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QSettings

from .tools import default_runtime, is_windows

logger = logging.getLogger(__name__)

ORGANIZATION = "nus3audio-gui"
APPLICATION = "nus3audio-gui"

VGAUDIO_CLI_PATH = "vgaudio_cli_path"
VGAUDIO_CLI_PREPATH = "vgaudio_cli_prepath"
VGMSTREAM_PATH = "vgmstream_path"
PREFER_VGMSTREAM_DECODE = "prefer_vgmstream_decode"
FIRST_TIME = "first_time"


def default_vgaudio_cli_path() -> str:
    return ".\\VGAudioCli.exe" if is_windows() else "./VGAudioCli.exe"


def default_vgmstream_path() -> str:
    return shutil.which("vgmstream-cli") or ""


class Settings:
    """
    Paths to the external tools and first-run state.

    Missing values fall back to defaults that are computed on first access.
    """

    def __init__(self, file_path: Optional[str | Path] = None):
        if file_path is None:
            self._store = QSettings(
                QSettings.Format.IniFormat,
                QSettings.Scope.UserScope,
                ORGANIZATION,
                APPLICATION,
            )
        else:
            self._store = QSettings(str(file_path), QSettings.Format.IniFormat)

    @property
    def file_path(self) -> Path:
        return Path(self._store.fileName())

    def _get_str(self, key: str, default) -> str:
        if not self._store.contains(key):
            return default()
        return str(self._store.value(key, "", type=str))

    def _get_bool(self, key: str, default: bool) -> bool:
        if not self._store.contains(key):
            return default
        return bool(self._store.value(key, default, type=bool))

    @property
    def vgaudio_cli_path(self) -> str:
        """Path to VGAudioCli's executable."""
        return self._get_str(VGAUDIO_CLI_PATH, default_vgaudio_cli_path)

    @vgaudio_cli_path.setter
    def vgaudio_cli_path(self, value: str):
        self._store.setValue(VGAUDIO_CLI_PATH, value)

    @property
    def vgaudio_cli_prepath(self) -> str:
        """
        Executable used to run VGAudioCli, e.g. mono.

        It receives the VGAudioCli path followed by the arguments.
        Defaults to an empty string on Windows.
        """
        return self._get_str(VGAUDIO_CLI_PREPATH, default_runtime)

    @vgaudio_cli_prepath.setter
    def vgaudio_cli_prepath(self, value: str):
        self._store.setValue(VGAUDIO_CLI_PREPATH, value)

    @property
    def vgmstream_path(self) -> str:
        """Path to vgmstream-cli, empty if not used."""
        return self._get_str(VGMSTREAM_PATH, default_vgmstream_path)

    @vgmstream_path.setter
    def vgmstream_path(self, value: str):
        self._store.setValue(VGMSTREAM_PATH, value)

    @property
    def prefer_vgmstream_decode(self) -> bool:
        return self._get_bool(PREFER_VGMSTREAM_DECODE, True)

    @prefer_vgmstream_decode.setter
    def prefer_vgmstream_decode(self, value: bool):
        self._store.setValue(PREFER_VGMSTREAM_DECODE, bool(value))

    @property
    def first_time(self) -> bool:
        """Whether the first-time greeting should be displayed."""
        return self._get_bool(FIRST_TIME, True)

    @first_time.setter
    def first_time(self, value: bool):
        self._store.setValue(FIRST_TIME, bool(value))

    def save(self) -> bool:
        """
        Write settings to disk.

        Never raises, errors are logged.

        Returns:
            True if the settings were written
        """
        self._store.sync()
        status = self._store.status()
        if status != QSettings.Status.NoError:
            logger.error("Error saving settings to %s: %s", self.file_path, status)
            return False
        logger.info("Saved settings to %s", self.file_path)
        return True
