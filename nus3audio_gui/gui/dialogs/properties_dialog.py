"""
Sound Properties Dialog

Edits name, container format and loop points of a sound.
Returns the user's choices, but does NOT modify the sound.
The calling code must apply the changes.
"""

from typing import Optional
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel,
    QGroupBox, QRadioButton, QButtonGroup, QLineEdit,
    QPushButton, QCheckBox, QSpinBox, QFormLayout, QMessageBox,
)

from ...core.codec import AudioExtension
from ...core.project import SoundItem

# QSpinBox ist auf int32 begrenzt
MAX_SAMPLE = 2**31 - 1


class PropertiesDialog(QDialog):
    """Dialog for the properties of one sound."""

    def __init__(self, item: SoundItem, parent=None):
        super().__init__(parent)
        self.item = item
        self.setWindowTitle(f"Properties of {item.name}")
        self.setMinimumWidth(350)

        layout = QVBoxLayout(self)

        form = QFormLayout()
        self.name_input = QLineEdit(item.name)
        self.name_input.setToolTip("Unique name of the sound")
        form.addRow("Name:", self.name_input)
        layout.addLayout(form)

        # Format
        format_group = QGroupBox("Format")
        format_layout = QVBoxLayout(format_group)
        self.format_button_group = QButtonGroup(self)

        self.rb_idsp = QRadioButton("IDSP format")
        self.rb_idsp.setToolTip("Used for lower-quality sound effects")
        self.format_button_group.addButton(self.rb_idsp)
        format_layout.addWidget(self.rb_idsp)

        self.rb_lopus = QRadioButton("LOPUS format")
        self.rb_lopus.setToolTip("Used for high-quality music")
        self.format_button_group.addButton(self.rb_lopus)
        format_layout.addWidget(self.rb_lopus)

        self.rb_bin = QRadioButton("Binary data")
        self.rb_bin.setToolTip("Any data which is not audio")
        self.format_button_group.addButton(self.rb_bin)
        format_layout.addWidget(self.rb_bin)

        {
            AudioExtension.IDSP: self.rb_idsp,
            AudioExtension.LOPUS: self.rb_lopus,
            AudioExtension.BIN: self.rb_bin,
        }[item.extension].setChecked(True)
        self.format_button_group.buttonToggled.connect(self._on_format_toggled)
        layout.addWidget(format_group)

        # Loop
        loop_group = QGroupBox("Loop")
        loop_layout = QFormLayout(loop_group)
        self.cb_loop = QCheckBox("Loop audio")
        self.cb_loop.setToolTip("Whether or not this audio will loop")
        self.cb_loop.toggled.connect(self._on_loop_toggled)
        loop_layout.addRow(self.cb_loop)

        self.loop_from = QSpinBox()
        self.loop_from.setRange(0, MAX_SAMPLE)
        self.loop_from.setToolTip(
            "Beginning of the loop in samples, starts again here when reaching the end of the loop"
        )
        loop_layout.addRow("Loop from:", self.loop_from)

        self.loop_to = QSpinBox()
        self.loop_to.setRange(0, MAX_SAMPLE)
        self.loop_to.setToolTip(
            "End of the loop in samples, when it reaches this point it loops back to the beginning of the loop"
        )
        loop_layout.addRow("Loop to:", self.loop_to)
        layout.addWidget(loop_group)

        if item.loop_points is not None:
            start, end = item.loop_points
            self.loop_from.setValue(min(start, MAX_SAMPLE))
            self.loop_to.setValue(min(end, MAX_SAMPLE))
            self.cb_loop.setChecked(True)
        else:
            self._on_loop_toggled(False)
        self._on_format_toggled()

        # Buttons
        btn_layout = QHBoxLayout()
        btn_layout.addStretch()

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        btn_layout.addWidget(cancel_btn)

        ok_btn = QPushButton("Ok")
        ok_btn.setToolTip("Apply changes and close this window")
        ok_btn.setDefault(True)
        ok_btn.clicked.connect(self._accept)
        btn_layout.addWidget(ok_btn)

        layout.addLayout(btn_layout)

    def _on_format_toggled(self, *args):
        """Binary data can't loop."""
        if self.rb_bin.isChecked():
            self.cb_loop.setChecked(False)
            self.cb_loop.setEnabled(False)
        else:
            self.cb_loop.setEnabled(True)

    def _on_loop_toggled(self, checked: bool):
        if checked and self.loop_to.value() == 0:
            self.loop_from.setValue(0)
            self.loop_to.setValue(min(self.item.length_in_samples, MAX_SAMPLE))
        self.loop_from.setEnabled(checked)
        self.loop_to.setEnabled(checked)

    def _accept(self):
        if not self.name_input.text().strip():
            QMessageBox.warning(self, "Properties", "Name must not be empty.")
            return
        if self.cb_loop.isChecked() and self.loop_from.value() >= self.loop_to.value():
            QMessageBox.warning(self, "Properties", "Loop beginning must be placed before loop end.")
            return
        self.accept()

    def get_name(self) -> str:
        return self.name_input.text().strip()

    def get_extension(self) -> AudioExtension:
        if self.rb_idsp.isChecked():
            return AudioExtension.IDSP
        if self.rb_lopus.isChecked():
            return AudioExtension.LOPUS
        return AudioExtension.BIN

    def get_loop_points(self) -> Optional[tuple[int, int]]:
        """
        Get loop points if looping is enabled.

        Returns:
            (start, end) in samples or None
        """
        if self.cb_loop.isChecked():
            return self.loop_from.value(), self.loop_to.value()
        return None
