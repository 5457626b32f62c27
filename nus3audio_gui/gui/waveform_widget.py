"""
Waveform Widget

Preview of the selected sound with:
- Loop start/end markers
- Playback cursor
- Time and sample display

Uses pyqtgraph for performant display of large datasets.
"""

from typing import Optional
import numpy as np
from PySide6.QtWidgets import QWidget, QVBoxLayout, QLabel
from PySide6.QtCore import Qt
import pyqtgraph as pg

from ..core.audio_io import AudioFile
from ..core.codec import DecodeError
from ..core.project import SoundItem
from ..utils.formatting import format_time, samples_to_time_str

# Maximale Punktzahl für die Anzeige
MAX_DISPLAY_POINTS = 100000


class WaveformWidget(QWidget):
    """Read-only waveform of one sound."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self._audio: Optional[AudioFile] = None

        self._init_ui()

    def _init_ui(self):
        """Initialize UI components."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setBackground('#1e1e2e')
        self.plot_widget.showGrid(x=True, y=True, alpha=0.3)
        self.plot_widget.setLabel('bottom', 'Time', units='s')
        # NUR X-Achse zoombar, Y-Achse gelockt
        self.plot_widget.setMouseEnabled(x=True, y=False)
        self.plot_widget.setYRange(-1.1, 1.1, padding=0)
        self.plot_widget.getPlotItem().setMenuEnabled(False)

        self.waveform_curve = self.plot_widget.plot(pen=pg.mkPen('#89b4fa', width=1))

        self.loop_start_line = pg.InfiniteLine(
            angle=90, movable=False,
            pen=pg.mkPen('#a6e3a1', width=2, style=Qt.PenStyle.DashLine),
        )
        self.loop_end_line = pg.InfiniteLine(
            angle=90, movable=False,
            pen=pg.mkPen('#fab387', width=2, style=Qt.PenStyle.DashLine),
        )
        self.cursor_line = pg.InfiniteLine(
            pos=0, angle=90, movable=False,
            pen=pg.mkPen('#f38ba8', width=2),
        )
        for line in (self.loop_start_line, self.loop_end_line, self.cursor_line):
            line.setVisible(False)
            self.plot_widget.addItem(line, ignoreBounds=True)

        layout.addWidget(self.plot_widget, stretch=1)

        self.status_label = QLabel("No sound selected")
        self.status_label.setStyleSheet("color: #888; padding: 4px; font-family: monospace;")
        layout.addWidget(self.status_label)

    def set_item(self, item: Optional[SoundItem]):
        """
        Show a sound, or clear the view for None/undecodable sounds.

        Args:
            item: Sound to display
        """
        self._audio = None
        self.waveform_curve.setData([], [])
        self.loop_start_line.setVisible(False)
        self.loop_end_line.setVisible(False)

        if item is None:
            self.status_label.setText("No sound selected")
            return

        if item.audio is None or item.is_binary:
            self.status_label.setText(f"{item.filename} | {item.status or 'No audio'}")
            return

        try:
            self._audio = item.audio.decode()
        except DecodeError as e:
            self.status_label.setText(f"{item.filename} | {e}")
            return

        self._update_waveform()
        self.plot_widget.setXRange(0, max(self._audio.duration_seconds, 0.001), padding=0.02)

        text = (
            f"{item.filename} | "
            f"{self._audio.sample_rate} Hz | "
            f"{'Mono' if self._audio.channels == 1 else 'Stereo'} | "
            f"{format_time(self._audio.duration_seconds)}"
        )

        if item.loop_points is not None:
            start, end = item.loop_points
            self.loop_start_line.setValue(start / self._audio.sample_rate)
            self.loop_end_line.setValue(end / self._audio.sample_rate)
            self.loop_start_line.setVisible(True)
            self.loop_end_line.setVisible(True)
            text += (
                f" | Loop {samples_to_time_str(start, self._audio.sample_rate, False)}"
                f" - {samples_to_time_str(end, self._audio.sample_rate, False)}"
            )

        self.status_label.setText(text)

    def _update_waveform(self):
        """Draw the first channel."""
        if self._audio is None:
            return

        data = self._audio.get_channel(0)

        # Min/Max-Hüllkurve für große Dateien
        if len(data) > MAX_DISPLAY_POINTS:
            factor = len(data) // MAX_DISPLAY_POINTS
            data_reshaped = data[:len(data) // factor * factor].reshape(-1, factor)
            display_data = np.empty(len(data_reshaped) * 2)
            display_data[0::2] = data_reshaped.min(axis=1)
            display_data[1::2] = data_reshaped.max(axis=1)
            time_axis = np.linspace(0, self._audio.duration_seconds, len(display_data))
            self.waveform_curve.setData(time_axis, display_data)
        else:
            time_axis = np.arange(len(data)) / self._audio.sample_rate
            self.waveform_curve.setData(time_axis, data)

    def set_cursor(self, seconds: Optional[float]):
        """Move the playback cursor, None hides it."""
        if seconds is None:
            self.cursor_line.setVisible(False)
            return
        self.cursor_line.setValue(seconds)
        self.cursor_line.setVisible(True)
