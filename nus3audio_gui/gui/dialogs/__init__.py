"""
Dialogs for the nus3audio GUI.
"""

from .properties_dialog import PropertiesDialog
from .sound_info_dialog import SoundInfoDialog

__all__ = ["PropertiesDialog", "SoundInfoDialog"]
