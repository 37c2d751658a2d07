"""Cairn: progress scoring for a meditation app."""

__version__ = "0.1.0"
