"""Speak the narration an assistant marks in its terminal output."""

__version__ = "0.1.0"
