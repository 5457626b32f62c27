"""
Hauptfenster des nus3audio-Editors

Struktur:
- Menüleiste (File / Edit / Playback / Help)
- Liste der Sounds im Container
- Wiedergabe-Steuerung mit Positionsanzeige
- Waveform-Vorschau des selektierten Sounds
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QFileDialog, QMessageBox, QLabel, QStatusBar,
    QApplication, QPushButton, QSlider, QSplitter,
    QListWidget, QInputDialog,
)
from PySide6.QtCore import Qt, QTimer, QUrl, Slot
from PySide6.QtGui import QAction, QKeySequence, QDesktopServices

from .. import __version__
from ..core.cache import reset_cache
from ..core.codec import AudioExtension, DecodeError, EncodeError
from ..core.container import Nus3audioError
from ..core.playback import Player, PlaybackError, PlaybackState
from ..core.project import Project, SoundItem
from ..core.settings import Settings
from ..core.tools import ToolError, Transcoder, is_windows
from ..utils.formatting import format_time
from .dialogs import PropertiesDialog, SoundInfoDialog
from .waveform_widget import WaveformWidget

logger = logging.getLogger(__name__)

MANUAL_URL = "https://github.com/junetried/simple-nus3audio-gui/wiki/Usage-Manual"
VGAUDIO_URL = "https://ci.appveyor.com/project/Thealexbarney/VGAudio/build/artifacts"

# Intervall der Positionsanzeige während der Wiedergabe
UPDATE_INTERVAL_MS = 100

AUDIO_FILES_DECODE_FILTER = (
    "All audio files (*.ogg *.flac *.wav *.mp3 *.idsp *.lopus);;"
    "OGG files (*.ogg);;FLAC files (*.flac);;WAV files (*.wav);;"
    "MP3 files (*.mp3);;IDSP files (*.idsp);;LOPUS files (*.lopus)"
)
AUDIO_FILES_ENCODE_FILTER = "WAV files (*.wav);;IDSP files (*.idsp);;LOPUS files (*.lopus)"
NUS3AUDIO_FILTER = "NUS3AUDIO files (*.nus3audio)"

CONFIGURE_MESSAGE = "Please set the path to the VGAudioCli executable."
CONFIGURE_RUNTIME_MESSAGE = (
    "Please set the path to the executable used to run .NET applications.\n"
    "This executable will be given the path to the VGAudioCli executable, "
    "immediately followed by arguments passed to it.\n"
    "It is recommended to use mono or dotnet over wine."
)
CONFIGURE_VGMSTREAM_MESSAGE = (
    "Please set the path to the vgmstream-cli executable.\n"
    "It is optional, but makes decoding faster and reads loop points.\n"
    "Leave empty to only use VGAudioCli."
)


def _format_problems(problems: list[tuple[str, str]]) -> str:
    return "\n".join(f"{name}: {reason.splitlines()[0] if reason else ''}" for name, reason in problems)


class MainWindow(QMainWindow):
    """Hauptfenster mit Soundliste und Wiedergabe."""

    def __init__(
        self,
        settings: Settings,
        cache_dir: Path,
        player: Optional[Player] = None,
    ):
        super().__init__()

        self.settings = settings
        self.cache_dir = Path(cache_dir)
        self.project = Project(Transcoder(settings), self.cache_dir)
        self.player = player or Player()
        self._replace_dir: Optional[str] = None  # Letztes Verzeichnis des Replace-Dialogs

        self._update_timer = QTimer(self)
        self._update_timer.setInterval(UPDATE_INTERVAL_MS)
        self._update_timer.timeout.connect(self._on_update)

        self._init_ui()
        self._apply_theme()
        self._init_menu()
        self._refresh_title()

    def _init_ui(self):
        """UI aufbauen."""
        self.setMinimumSize(420, 360)
        self.resize(640, 480)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)

        # Wiedergabe-Leiste
        controls = QHBoxLayout()

        self.btn_play = QPushButton("▶")
        self.btn_play.setToolTip("Play selected audio")
        self.btn_play.clicked.connect(self._play_pause)
        controls.addWidget(self.btn_play)

        self.btn_stop = QPushButton("■")
        self.btn_stop.setToolTip("Stop playback")
        self.btn_stop.clicked.connect(self._stop)
        controls.addWidget(self.btn_stop)

        self.position_slider = QSlider(Qt.Orientation.Horizontal)
        self.position_slider.setToolTip("Position of the playing audio")
        self.position_slider.setRange(0, 1000)
        self.position_slider.setEnabled(False)
        controls.addWidget(self.position_slider, stretch=1)

        self.position_label = QLabel(format_time(0))
        self.position_label.setStyleSheet("font-family: monospace;")
        controls.addWidget(self.position_label)

        layout.addLayout(controls)

        # Liste und Waveform
        splitter = QSplitter(Qt.Orientation.Vertical)

        self.sound_list = QListWidget()
        self.sound_list.currentRowChanged.connect(self._on_selection_changed)
        self.sound_list.itemDoubleClicked.connect(lambda _: self._properties())
        splitter.addWidget(self.sound_list)

        self.waveform = WaveformWidget()
        splitter.addWidget(self.waveform)
        splitter.setSizes([300, 160])

        layout.addWidget(splitter, stretch=1)

        self.statusBar = QStatusBar()
        self.setStatusBar(self.statusBar)
        self.status_label = QLabel("")
        self.statusBar.addWidget(self.status_label)

        self.setAcceptDrops(True)

    def _apply_theme(self):
        """Dark theme."""
        self.setStyleSheet("""
            QMainWindow, QWidget {
                background-color: #1e1e2e;
                color: #cdd6f4;
            }
            QMenuBar::item:selected, QMenu::item:selected {
                background-color: #45475a;
            }
            QPushButton {
                background-color: #313244;
                border: 1px solid #45475a;
                padding: 6px 14px;
                border-radius: 6px;
            }
            QPushButton:hover {
                border-color: #89b4fa;
            }
            QListWidget {
                background-color: #313244;
                border: 1px solid #45475a;
                border-radius: 4px;
                font-family: monospace;
            }
            QListWidget::item {
                padding: 4px;
            }
            QListWidget::item:selected {
                background-color: #89b4fa;
                color: #1e1e2e;
            }
            QSlider::groove:horizontal {
                height: 4px;
                background: #45475a;
            }
            QSlider::handle:horizontal {
                width: 10px;
                margin: -4px 0;
                background: #f38ba8;
                border-radius: 5px;
            }
            QStatusBar {
                color: #a6adc8;
            }
        """)

    def _add_action(self, menu, text: str, slot, shortcut=None) -> QAction:
        action = QAction(text, self)
        if shortcut is not None:
            action.setShortcut(QKeySequence(shortcut))
        action.triggered.connect(slot)
        menu.addAction(action)
        return action

    def _init_menu(self):
        """Menüleiste."""
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        self._add_action(file_menu, "&New", self._new, QKeySequence.StandardKey.New)
        self._add_action(file_menu, "&Open nus3audio...", self._open_file, QKeySequence.StandardKey.Open)
        self._add_action(file_menu, "&Save nus3audio", self._save, QKeySequence.StandardKey.Save)
        self._add_action(file_menu, "Save nus3audio &as...", self._save_as, "Ctrl+Shift+S")
        file_menu.addSeparator()
        self._add_action(file_menu, "&Export single sound...", self._export_single, "Ctrl+E")
        self._add_action(file_menu, "E&xport all...", self._export_all, "Ctrl+Shift+E")
        file_menu.addSeparator()
        self._add_action(file_menu, "&Quit", self.close, "Ctrl+Q")

        edit_menu = menu_bar.addMenu("&Edit")
        self._add_action(edit_menu, "&Add sound", self._add, "Ctrl+=")
        self._add_action(edit_menu, "Re&move selected sound", self._remove, "Ctrl+-")
        self._add_action(edit_menu, "Sound &properties...", self._properties, "Ctrl+P")
        self._add_action(edit_menu, "Sound &information...", self._sound_info, "Ctrl+I")
        self._add_action(edit_menu, "&Replace single sound...", self._replace, "Ctrl+R")
        edit_menu.addSeparator()
        self._add_action(edit_menu, "&Configure VGAudioCli path...", self._configure_vgaudio_cli_path)
        if not is_windows():
            self._add_action(edit_menu, "Configure .&NET runtime path...", self._configure_runtime_path)
        self._add_action(edit_menu, "Configure v&gmstream path...", self._configure_vgmstream_path)

        self.action_prefer_vgmstream = QAction("Prefer vgmstream for &decoding", self)
        self.action_prefer_vgmstream.setCheckable(True)
        self.action_prefer_vgmstream.setChecked(self.settings.prefer_vgmstream_decode)
        self.action_prefer_vgmstream.toggled.connect(self._on_prefer_vgmstream_toggled)
        edit_menu.addAction(self.action_prefer_vgmstream)

        playback_menu = menu_bar.addMenu("&Playback")
        self._add_action(playback_menu, "&Play / Pause", self._play_pause, "Space")
        self._add_action(playback_menu, "&Stop", self._stop)

        help_menu = menu_bar.addMenu("&Help")
        self._add_action(help_menu, "&VGAudioCli", self._welcome_again)
        self._add_action(help_menu, "User &manual...", self._open_manual)
        version_action = QAction(f"Version {__version__}", self)
        version_action.setEnabled(False)
        help_menu.addAction(version_action)

    # === Hilfsfunktionen ===

    @contextmanager
    def _busy(self, message: str = ""):
        """Wartecursor während externer Tools."""
        self.status_label.setText(message)
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        QApplication.processEvents()
        try:
            yield
        finally:
            QApplication.restoreOverrideCursor()
            self.status_label.setText("")

    def _alert(self, title: str, message: str):
        QMessageBox.warning(self, title, message)

    def _error(self, message: str):
        logger.error(message)
        QMessageBox.critical(self, "Error", message)

    def _selected_index(self) -> Optional[int]:
        row = self.sound_list.currentRow()
        if 0 <= row < len(self.project.items):
            return row
        return None

    def _selected_item(self) -> Optional[SoundItem]:
        index = self._selected_index()
        return self.project.items[index] if index is not None else None

    def _require_selection(self) -> Optional[int]:
        index = self._selected_index()
        if index is None:
            self._alert("Alert", "Nothing is selected.")
        return index

    def _refresh_list(self, select: Optional[int] = None):
        """Liste aus dem Projekt neu aufbauen."""
        if select is None:
            select = self.sound_list.currentRow()
        self.sound_list.blockSignals(True)
        self.sound_list.clear()
        self.sound_list.addItems(self.project.labels())
        self.sound_list.blockSignals(False)
        if 0 <= select < self.sound_list.count():
            self.sound_list.setCurrentRow(select)
        self._on_selection_changed(self.sound_list.currentRow())
        self._refresh_title()

    def _refresh_label(self, index: int):
        list_item = self.sound_list.item(index)
        if list_item is not None:
            list_item.setText(self.project.label_of(index))
        self._refresh_title()

    def _refresh_title(self):
        name = self.project.name or "untitled"
        marker = "*" if self.project.modified else ""
        self.setWindowTitle(f"{marker}{name} - nus3audio GUI")

    # === Datei ===

    @Slot()
    def _new(self):
        if not self._confirm_discard():
            return
        self.player.stop()
        self.project.new()
        self._refresh_list()

    @Slot()
    def _open_file(self):
        """Datei öffnen Dialog."""
        filename, _ = QFileDialog.getOpenFileName(self, "Open nus3audio", "", NUS3AUDIO_FILTER)
        if filename:
            self.load_file(filename)

    def load_file(self, filepath: str):
        """Container laden."""
        if not self._confirm_discard():
            return

        # Wiedergabe stoppen bevor die Liste ersetzt wird
        self._stop()

        try:
            with self._busy(f"Loading {Path(filepath).name}..."):
                problems = self.project.open(filepath)
        except (OSError, Nus3audioError) as e:
            self._error(f"Error reading file:\n{e}")
            return

        self._refresh_list(select=0)

        if problems:
            self._alert(
                "Warning",
                "The following sounds could not be decoded and were loaded as binary data:\n"
                + _format_problems(problems),
            )

    @Slot()
    def _save(self):
        if self.project.path is None:
            self._save_as()
            return
        self._save_to(None)

    @Slot()
    def _save_as(self):
        filename, _ = QFileDialog.getSaveFileName(
            self, "Save nus3audio as", self.project.name or "", NUS3AUDIO_FILTER
        )
        if filename:
            self._save_to(filename)

    def _save_to(self, filename: Optional[str]):
        try:
            with self._busy("Saving..."):
                problems = self.project.save(filename)
        except (OSError, ValueError) as e:
            self._error(f"Error saving file:\n{e}")
            return

        # Labels neu, weil Sounds evtl. erst jetzt kodiert wurden
        self._refresh_list()

        if problems:
            self._alert(
                "Warning",
                "The following sounds were saved empty:\n" + _format_problems(problems),
            )

    @Slot()
    def _export_single(self):
        index = self._require_selection()
        if index is None:
            return
        item = self.project.items[index]

        if item.extension is AudioExtension.BIN:
            file_filter, default = "All files (*)", f"{item.name}.bin"
        else:
            file_filter, default = AUDIO_FILES_ENCODE_FILTER, f"{item.name}.wav"

        filename, _ = QFileDialog.getSaveFileName(self, "Export single sound", default, file_filter)
        if not filename:
            return

        try:
            with self._busy(f"Exporting {item.name}..."):
                self.project.export_item(index, filename)
        except (OSError, ValueError, DecodeError, EncodeError, ToolError) as e:
            self._error(str(e))
        self._refresh_label(index)

    @Slot()
    def _export_all(self):
        directory = QFileDialog.getExistingDirectory(self, "Export all sounds")
        if not directory:
            return

        try:
            with self._busy("Exporting..."):
                skipped = self.project.export_all(directory)
        except OSError as e:
            self._error(f"Error writing file:\n{e}")
            return

        if skipped:
            self._alert("Warning", "The following items were skipped:\n" + _format_problems(skipped))

    # === Bearbeiten ===

    @Slot()
    def _add(self):
        index = self.project.add_item()
        self._refresh_list(select=index)

    @Slot()
    def _remove(self):
        index = self._require_selection()
        if index is None:
            return
        self._stop()
        self.project.remove(index)
        self._refresh_list(select=min(index, len(self.project.items) - 1))

    @Slot()
    def _properties(self):
        index = self._require_selection()
        if index is None:
            return
        item = self.project.items[index]

        dialog = PropertiesDialog(item, self)
        if not dialog.exec():
            return

        try:
            changed = self.project.set_properties(
                index,
                dialog.get_name(),
                dialog.get_extension(),
                dialog.get_loop_points(),
            )
        except ValueError as e:
            self._alert("Properties", str(e))
            return

        if changed:
            self._refresh_label(index)
            self.waveform.set_item(item)

    @Slot()
    def _sound_info(self):
        index = self._require_selection()
        if index is None:
            return
        SoundInfoDialog(self.project.items[index], self).exec()

    @Slot()
    def _replace(self):
        index = self._require_selection()
        if index is None:
            return

        filename, _ = QFileDialog.getOpenFileName(
            self, "Replace single sound", self._replace_dir or "", AUDIO_FILES_DECODE_FILTER
        )
        if not filename:
            return
        self._replace_dir = str(Path(filename).parent)

        # Laufende Wiedergabe gehört evtl. zum ersetzten Sound
        self._stop()

        try:
            with self._busy(f"Importing {Path(filename).name}..."):
                self.project.replace(index, filename)
        except OSError as e:
            self._error(f"Could not read file:\n{e}")
        except DecodeError as e:
            self._error(f"Could not decode file as audio:\n{e}")

        self._refresh_list(select=index)

    # === Einstellungen ===

    def _ask_setting(self, title: str, message: str, current: str) -> Optional[str]:
        value, ok = QInputDialog.getText(self, title, message, text=current)
        return value.strip() if ok else None

    @Slot()
    def _configure_vgaudio_cli_path(self):
        value = self._ask_setting("VGAudioCli Path", CONFIGURE_MESSAGE, self.settings.vgaudio_cli_path)
        if value is not None:
            self.settings.vgaudio_cli_path = value

    @Slot()
    def _configure_runtime_path(self):
        value = self._ask_setting(".NET Runtime Path", CONFIGURE_RUNTIME_MESSAGE, self.settings.vgaudio_cli_prepath)
        if value is not None:
            self.settings.vgaudio_cli_prepath = value

    @Slot()
    def _configure_vgmstream_path(self):
        value = self._ask_setting("vgmstream Path", CONFIGURE_VGMSTREAM_MESSAGE, self.settings.vgmstream_path)
        if value is not None:
            self.settings.vgmstream_path = value

    @Slot(bool)
    def _on_prefer_vgmstream_toggled(self, checked: bool):
        self.settings.prefer_vgmstream_decode = checked

    def first_time_greeting(self):
        """Begrüßung anzeigen, falls noch nicht geschehen."""
        if not self.settings.first_time:
            return

        box = QMessageBox(self)
        box.setWindowTitle("Welcome")
        box.setText(
            "To get started, please download a release of\n"
            f"{VGAUDIO_URL}\n"
            "Then, visit \"Edit → Configure VGAudioCli path\" to set this location."
        )
        box.addButton("Dismiss", QMessageBox.ButtonRole.RejectRole)
        show_me = box.addButton("Show me", QMessageBox.ButtonRole.AcceptRole)
        box.exec()

        self.settings.first_time = False

        if box.clickedButton() is show_me:
            QDesktopServices.openUrl(QUrl(VGAUDIO_URL))
            self._configure_vgaudio_cli_path()

    @Slot()
    def _welcome_again(self):
        self.settings.first_time = True
        self.first_time_greeting()

    @Slot()
    def _open_manual(self):
        logger.info("Opening manual at %s", MANUAL_URL)
        QDesktopServices.openUrl(QUrl(MANUAL_URL))

    # === Wiedergabe ===

    @Slot()
    def _play_pause(self):
        try:
            state = self.player.play_pause(self._selected_item())
        except PlaybackError as e:
            self._error(str(e))
            self._stop()
            return

        if state is PlaybackState.PLAYING:
            self.btn_play.setText("⏸")
            self._update_timer.start()
        else:
            self.btn_play.setText("▶")
            self._update_timer.stop()
        self._on_update()

    @Slot()
    def _stop(self):
        self.player.stop()
        self._update_timer.stop()
        self.btn_play.setText("▶")
        self.position_slider.setValue(0)
        self.position_label.setText(format_time(0))
        self.waveform.set_cursor(None)

    @Slot()
    def _on_update(self):
        """Positionsanzeige aktualisieren."""
        duration = self.player.duration_seconds
        position = self.player.position_seconds

        if duration > 0:
            self.position_slider.setValue(int(position / duration * self.position_slider.maximum()))
        self.position_label.setText(format_time(position))
        self.waveform.set_cursor(position if duration > 0 else None)

        # Keine weiteren Updates wenn nichts mehr läuft
        if self.player.state is not PlaybackState.PLAYING:
            self._update_timer.stop()
            self.btn_play.setText("▶")

    @Slot(int)
    def _on_selection_changed(self, row: int):
        self.waveform.set_item(self._selected_item())

    # === Fenster ===

    def _confirm_discard(self) -> bool:
        """True wenn ungespeicherte Änderungen verworfen werden dürfen."""
        if not self.project.modified:
            return True
        answer = QMessageBox.question(
            self,
            "Warning",
            "You have currently unsaved changes.\nWould you like to discard them?",
            QMessageBox.StandardButton.Discard | QMessageBox.StandardButton.Cancel,
            QMessageBox.StandardButton.Cancel,
        )
        return answer == QMessageBox.StandardButton.Discard

    def dragEnterEvent(self, event):
        """Drag & Drop."""
        if event.mimeData().hasUrls():
            for url in event.mimeData().urls():
                if url.toLocalFile().lower().endswith(".nus3audio"):
                    event.acceptProposedAction()
                    return

    def dropEvent(self, event):
        """Datei gedroppt."""
        for url in event.mimeData().urls():
            filepath = url.toLocalFile()
            if filepath.lower().endswith(".nus3audio"):
                self.load_file(filepath)
                break

    def closeEvent(self, event):
        """Beim Schließen."""
        if not self._confirm_discard():
            event.ignore()
            return

        self._stop()
        self.settings.save()
        try:
            reset_cache(self.cache_dir)
        except OSError as e:
            logger.error("Failed to reset the cache directory: %s", e)
        event.accept()
