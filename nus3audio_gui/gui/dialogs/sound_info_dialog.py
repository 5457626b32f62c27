"""
Sound Info Dialog

Displays detailed information about a sound of the container.
"""

from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel,
    QGroupBox, QFormLayout, QPushButton,
)

from ...core.project import SoundItem
from ...utils.formatting import (
    format_sample_rate, format_channels, human_readable_size, samples_to_time_str,
)


class SoundInfoDialog(QDialog):
    """Dialog showing detailed sound information."""

    def __init__(self, item: SoundItem, parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"Information about {item.name}")
        self.setMinimumWidth(400)

        layout = QVBoxLayout(self)

        # Sound
        sound_group = QGroupBox("Sound")
        sound_layout = QFormLayout(sound_group)
        sound_layout.addRow("Name:", QLabel(item.name))
        sound_layout.addRow("Format:", QLabel(str(item.extension).upper()))
        sound_layout.addRow("Status:", QLabel(item.status or "Complete"))
        layout.addWidget(sound_group)

        # Format
        format_group = QGroupBox("Format")
        format_layout = QFormLayout(format_group)
        if item.audio is not None and not item.is_binary:
            format_layout.addRow("Sample Rate:", QLabel(format_sample_rate(item.sample_rate)))
            format_layout.addRow("Channels:", QLabel(format_channels(item.channels)))
            format_layout.addRow(
                "Length:",
                QLabel(samples_to_time_str(item.length_in_samples, item.sample_rate)),
            )
        else:
            format_layout.addRow("Audio:", QLabel("None"))

        if item.loop_points is not None:
            start, end = item.loop_points
            format_layout.addRow("Loop:", QLabel(f"{start:,} - {end:,} samples"))
        else:
            format_layout.addRow("Loop:", QLabel("No"))
        layout.addWidget(format_group)

        # Sizes
        size_group = QGroupBox("Data")
        size_layout = QFormLayout(size_group)
        if item.audio is not None:
            size_layout.addRow(
                f"Imported ({item.audio.encoding.value}):",
                QLabel(human_readable_size(len(item.audio.data))),
            )
        if item.encoded is not None:
            size_layout.addRow(
                f"Encoded ({item.extension}):",
                QLabel(human_readable_size(len(item.encoded))),
            )
        layout.addWidget(size_group)

        # Close button
        btn_layout = QHBoxLayout()
        btn_layout.addStretch()
        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.accept)
        btn_layout.addWidget(close_btn)
        layout.addLayout(btn_layout)
