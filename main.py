#!/usr/bin/env python3
"""
nus3audio GUI - Einstiegspunkt

Editor für nus3audio-Container (Super Smash Bros. Ultimate).

Verwendung:
    python main.py [container.nus3audio]

Log-Level über die Umgebungsvariable NUS3AUDIO_GUI_LOG (z.B. DEBUG).
"""

import logging
import os
import sys
from pathlib import Path


def _configure_logging():
    level_name = os.environ.get("NUS3AUDIO_GUI_LOG", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    """Start the nus3audio GUI."""
    # Check Python version
    if sys.version_info < (3, 11):
        print("Error: Python 3.11 or higher is required.")
        print(f"Current version: {sys.version}")
        sys.exit(1)

    # Import PySide6 (late import for faster error if not installed)
    try:
        from PySide6.QtWidgets import QApplication, QMessageBox
        from PySide6.QtCore import Qt
    except ImportError:
        print("Error: PySide6 is not installed.")
        print("Install with: pip install PySide6")
        sys.exit(1)

    _configure_logging()
    logger = logging.getLogger("nus3audio_gui")

    from nus3audio_gui import __version__
    from nus3audio_gui.core.cache import default_cache_dir, reset_cache
    from nus3audio_gui.core.settings import Settings
    from nus3audio_gui.gui import MainWindow

    # Enable High DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("nus3audio GUI")
    app.setApplicationVersion(__version__)
    app.setOrganizationName("nus3audio-gui")

    settings = Settings()
    logger.info("Using settings file %s", settings.file_path)

    # Cache muss vor dem ersten Dekodieren leer sein
    cache_dir = default_cache_dir()
    try:
        reset_cache(cache_dir)
    except OSError as e:
        logger.critical("Failed to reset the cache directory %s: %s", cache_dir, e)
        QMessageBox.critical(
            None,
            "Fatal error",
            f"Failed to reset the cache directory:\n{cache_dir}\n\n{e}",
        )
        sys.exit(1)

    window = MainWindow(settings, cache_dir)
    window.show()
    window.first_time_greeting()

    # Load file if provided as argument
    if len(sys.argv) > 1:
        filepath = Path(sys.argv[1])
        if filepath.exists() and filepath.suffix.lower() == ".nus3audio":
            window.load_file(str(filepath))

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
