"""Control-sequence stripping and delimiter reassembly for raw terminal output.

Terminal output reaches us in arbitrary pieces: an escape sequence, a speech
marker, or the narration between two markers may be cut anywhere. The
segmenter therefore never matches markers per chunk; it cleans each chunk,
appends it to a carry-over buffer, and only emits segments once both markers
are present in the accumulated text.
"""

from __future__ import annotations

import re

DEFAULT_OPEN_MARKER = "«tts»"
DEFAULT_CLOSE_MARKER = "«/tts»"

_CONTROL_SEQUENCE_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"  # CSI: cursor movement, colors, private modes
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"  # OSC: window title, hyperlinks
    r"|\x1b[PX^_][^\x1b]*\x1b\\"  # DCS, SOS, PM, APC
    r"|\x1b[()*+][ -~]"  # charset designation
    r"|\x1b[0-9=<>@-Z\\-_]"  # two-byte escapes
)
_INCOMPLETE_TAIL_RE = re.compile(r"\x1b(?:\[[0-?]*[ -/]*|\][^\x07\x1b]*\x1b?|[PX^_][^\x1b]*\x1b?|[()*+])?\Z")
_OSC_END_RE = re.compile(r"\x07|\x1b\\")
_STRING_END_RE = re.compile(r"\x1b\\")
_LINE_BREAK_RE = re.compile(r"[\t\n\r]")
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f\x7f]")

_MAX_PENDING_ESCAPE = 256


def strip_control_sequences(text: str) -> str:
    """Remove terminal escape sequences and raw control bytes from ``text``.

    Tabs and line breaks become spaces so narration wrapped over several
    terminal lines keeps its word boundaries.
    """
    text = _CONTROL_SEQUENCE_RE.sub("", text)
    text = _LINE_BREAK_RE.sub(" ", text)
    return _CONTROL_CHAR_RE.sub("", text)


def strip_markers(
    text: str,
    open_marker: str = DEFAULT_OPEN_MARKER,
    close_marker: str = DEFAULT_CLOSE_MARKER,
) -> str:
    """Hide speech markers from text that is about to be displayed."""
    return text.replace(open_marker, "").replace(close_marker, "")


class StreamSegmenter:
    """Reassembles ``open ... close`` delimited segments across chunk boundaries.

    Not thread-safe; one instance belongs to one terminal session.
    """

    def __init__(
        self,
        *,
        open_marker: str = DEFAULT_OPEN_MARKER,
        close_marker: str = DEFAULT_CLOSE_MARKER,
        max_buffer_chars: int = 2_000,
    ) -> None:
        if not open_marker or not close_marker:
            raise ValueError("Speech markers must be non-empty")
        self._open_marker = open_marker
        self._close_marker = close_marker
        self._max_buffer_chars = max_buffer_chars
        self._pair_re = re.compile(re.escape(open_marker) + r"(.*?)" + re.escape(close_marker), re.DOTALL)
        self._buffer = ""
        self._pending_escape = ""
        self._skip_until: re.Pattern[str] | None = None

    @property
    def pending(self) -> str:
        """Cleaned text still waiting for a closing marker."""
        return self._buffer

    def reset(self) -> None:
        self._buffer = ""
        self._pending_escape = ""
        self._skip_until = None

    def ingest(self, chunk: str) -> list[str]:
        """Consume one raw chunk and return every segment it completes, in order."""
        self._buffer += self._clean(chunk)

        segments: list[str] = []
        consumed = 0
        for match in self._pair_re.finditer(self._buffer):
            consumed = match.end()
            content = match.group(1).strip()
            if content:
                segments.append(content)

        self._buffer = self._bound(self._buffer[consumed:])
        return segments

    def _clean(self, chunk: str) -> str:
        text = self._pending_escape + chunk
        self._pending_escape = ""

        if self._skip_until is not None:
            end = self._skip_until.search(text)
            if end is None:
                # Still inside an oversized string sequence; an ESC may begin its terminator.
                self._pending_escape = "\x1b" if text.endswith("\x1b") else ""
                return ""
            self._skip_until = None
            text = text[end.end() :]

        tail = _INCOMPLETE_TAIL_RE.search(text)
        if tail is not None:
            pending = tail.group(0)
            text = text[: tail.start()]
            if len(pending) <= _MAX_PENDING_ESCAPE:
                self._pending_escape = pending
            elif pending[1] in "]PX^_":
                self._skip_until = _OSC_END_RE if pending[1] == "]" else _STRING_END_RE
                self._pending_escape = "\x1b" if pending.endswith("\x1b") else ""

        return strip_control_sequences(text)

    def _bound(self, remainder: str) -> str:
        if self._open_marker not in remainder:
            # Only a half-received open marker is worth keeping.
            partial = self._partial_open_marker(remainder)
            remainder = remainder[-partial:] if partial else ""

        if len(remainder) > self._max_buffer_chars:
            remainder = remainder[-self._max_buffer_chars :]
        return remainder

    def _partial_open_marker(self, text: str) -> int:
        for size in range(len(self._open_marker) - 1, 0, -1):
            if text.endswith(self._open_marker[:size]):
                return size
        return 0
