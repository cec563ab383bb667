"""Pixel Studio - pixel art editor with autosave"""

__version__ = "1.0.0"
