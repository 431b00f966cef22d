"""Logging setup for the narrator runtime."""

from .logging import configure_logging

__all__ = ["configure_logging"]
