"""Unit Reader - English reading practice with vocabulary capture."""

__version__ = "0.1.0"
