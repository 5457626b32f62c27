"""
GUI module for the nus3audio GUI.

Uses PySide6 and pyqtgraph.
Strict separation from editing logic - this module only contains presentation.
"""

from .main_window import MainWindow

__all__ = ["MainWindow"]
