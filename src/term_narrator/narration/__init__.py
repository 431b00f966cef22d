"""Segment extraction, prose filtering, and dedup for narrated terminal output."""

from .classifier import is_speakable_prose
from .ledger import SpokenLedger
from .segmenter import (
    DEFAULT_CLOSE_MARKER,
    DEFAULT_OPEN_MARKER,
    StreamSegmenter,
    strip_control_sequences,
    strip_markers,
)

__all__ = [
    "DEFAULT_CLOSE_MARKER",
    "DEFAULT_OPEN_MARKER",
    "SpokenLedger",
    "StreamSegmenter",
    "is_speakable_prose",
    "strip_control_sequences",
    "strip_markers",
]
