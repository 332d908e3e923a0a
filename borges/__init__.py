"""Borges - a personal reading catalog."""

__version__ = "0.1.0"
