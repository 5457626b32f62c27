"""
nus3audio GUI - editor for nus3audio sound containers.
"""

__version__ = "0.4.0"
