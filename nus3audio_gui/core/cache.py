"""
Cache directory handling.

External tools read and write real files, so every open container gets a
subdirectory of the cache. The cache is emptied on start and exit.
"""

import logging
import shutil
import tempfile
from pathlib import Path

from PySide6.QtCore import QStandardPaths

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = "nus3audio-gui"


def default_cache_dir() -> Path:
    """Per-user cache directory of the application."""
    base = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericCacheLocation)
    if not base:
        base = tempfile.gettempdir()
    return Path(base) / CACHE_DIR_NAME


def _remove(path: Path):
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def prepare_target_dir(target_dir: Path) -> Path:
    """
    Empty target_dir, creating it if needed.

    Only call this on directories inside the cache.

    Raises:
        OSError: Directory could not be emptied or created
    """
    target_dir = Path(target_dir)
    if target_dir.exists() and not target_dir.is_dir():
        target_dir.unlink()

    if target_dir.is_dir():
        for item in target_dir.iterdir():
            _remove(item)
    else:
        target_dir.mkdir(parents=True)

    return target_dir


def reset_cache(cache_dir: Path) -> Path:
    """
    Reset the cache dir to an empty state.

    Raises:
        OSError: Cache could not be removed or created
    """
    cache_dir = Path(cache_dir)
    if cache_dir.exists():
        _remove(cache_dir)
    cache_dir.mkdir(parents=True)
    logger.debug("Reset cache directory %s", cache_dir)
    return cache_dir
