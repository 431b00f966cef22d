"""Terminal session state and the registry that routes narration to playback."""

from __future__ import annotations

import codecs
import logging
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

from term_narrator.narration import (
    DEFAULT_CLOSE_MARKER,
    DEFAULT_OPEN_MARKER,
    SpokenLedger,
    StreamSegmenter,
    is_speakable_prose,
    strip_markers,
)
from term_narrator.voice.output import PlaybackOrchestrator


@dataclass(slots=True)
class NarrationConfig:
    """Per-session extraction limits."""

    open_marker: str = DEFAULT_OPEN_MARKER
    close_marker: str = DEFAULT_CLOSE_MARKER
    carry_over_max_chars: int = 2_000
    spoken_max_entries: int = 1_000
    min_prose_length: int = 5
    replay_max_chunks: int = 5_000


@dataclass(slots=True)
class FeedResult:
    """What one chunk produced: text to display and the segments it yielded."""

    display: str
    segments: list[str] = field(default_factory=list)
    accepted: list[str] = field(default_factory=list)
    enqueued: list[str] = field(default_factory=list)


class SpeechRouter(Protocol):
    """Decides whether a new segment from a session is actually spoken."""

    def speak(self, session_id: str, text: str) -> bool:
        """Queue ``text`` for playback when the session may be heard."""


class ReplayHistory:
    """Bounded raw-output history used to rebuild a session after reattaching."""

    def __init__(self, max_chunks: int = 5_000) -> None:
        self._chunks: deque[str] = deque(maxlen=max_chunks)

    def append(self, chunk: str) -> None:
        self._chunks.append(chunk)

    def clear(self) -> None:
        self._chunks.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._chunks))

    def __len__(self) -> int:
        return len(self._chunks)


class TerminalSession:
    """Extraction state for one terminal: carry-over buffer, spoken ledger, and silent flag.

    Sessions start silent: segments are recorded in the ledger but never
    spoken until the user sends input, so output that predates the user's
    first keystroke (including replayed history) is not narrated.
    """

    def __init__(
        self,
        session_id: str,
        *,
        config: NarrationConfig | None = None,
        router: SpeechRouter | None = None,
        history: ReplayHistory | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.session_id = session_id
        self.config = config or NarrationConfig()
        self.silent = True
        self.segmenter = StreamSegmenter(
            open_marker=self.config.open_marker,
            close_marker=self.config.close_marker,
            max_buffer_chars=self.config.carry_over_max_chars,
        )
        self.ledger = SpokenLedger(max_entries=self.config.spoken_max_entries)
        self.history = history if history is not None else ReplayHistory(self.config.replay_max_chunks)
        self._router = router
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._logger = logger or logging.getLogger("term_narrator.session")

    def note_user_input(self) -> None:
        """Leave silent mode; called whenever the user submits input."""
        if self.silent:
            self.silent = False
            self._logger.info("silent_mode_ended", extra={"session_id": self.session_id})

    def feed_bytes(self, data: bytes) -> FeedResult:
        """Decode transport bytes (UTF-8, split-safe) and feed the result."""
        try:
            chunk = self._decoder.decode(data)
        except UnicodeDecodeError:
            self._decoder.reset()
            self._logger.warning(
                "chunk_decode_failed",
                extra={"session_id": self.session_id, "chunk_bytes": len(data)},
            )
            return FeedResult(display=data.decode("utf-8", errors="replace"))
        return self.feed(chunk)

    def feed(self, chunk: str, *, record_history: bool = True) -> FeedResult:
        """Process one raw chunk and return its display text and new segments."""
        if record_history:
            self.history.append(chunk)
        display = strip_markers(chunk, self.config.open_marker, self.config.close_marker)

        try:
            segments = self.segmenter.ingest(chunk)
        except Exception:  # noqa: BLE001 - narration must never break the terminal.
            self._logger.exception(
                "segment_extraction_failed",
                extra={"session_id": self.session_id, "chunk_chars": len(chunk)},
            )
            return FeedResult(display=display)

        result = FeedResult(display=display, segments=segments)
        for segment in segments:
            if not is_speakable_prose(segment, min_length=self.config.min_prose_length):
                self._logger.debug("segment_rejected", extra={"session_id": self.session_id, "text": segment})
                continue
            if not self.ledger.should_speak(segment):
                continue

            result.accepted.append(segment)
            if self.silent or self._router is None:
                continue
            if self._router.speak(self.session_id, segment):
                result.enqueued.append(segment)
        return result

    def replay(self, chunks: Iterable[str]) -> str:
        """Register every segment in ``chunks`` without speaking; return the display text."""
        self.silent = True
        return "".join(self.feed(chunk, record_history=False).display for chunk in chunks)


class SessionRegistry:
    """Process-wide owner of terminal sessions and the shared playback queue."""

    def __init__(
        self,
        orchestrator: PlaybackOrchestrator,
        *,
        config: NarrationConfig | None = None,
        voice_output_enabled: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._config = config or NarrationConfig()
        self._voice_output_enabled = voice_output_enabled
        self._logger = logger or logging.getLogger("term_narrator.session")
        self._sessions: dict[str, TerminalSession] = {}
        self._active_session_id: str | None = None

    @property
    def orchestrator(self) -> PlaybackOrchestrator:
        return self._orchestrator

    @property
    def voice_output_enabled(self) -> bool:
        return self._voice_output_enabled

    @property
    def active_session_id(self) -> str | None:
        return self._active_session_id

    def open(self, session_id: str) -> TerminalSession:
        """Create a fresh, silent session."""
        if session_id in self._sessions:
            raise ValueError(f"Terminal session already open: {session_id}")
        session = self._new_session(session_id)
        self._sessions[session_id] = session
        self._logger.info("session_opened", extra={"session_id": session_id})
        return session

    def get(self, session_id: str) -> TerminalSession:
        if session_id not in self._sessions:
            raise KeyError(f"Unknown terminal session: {session_id}")
        return self._sessions[session_id]

    def reattach(self, session_id: str) -> tuple[TerminalSession, str]:
        """Rebuild a session from its history after the display layer was torn down.

        Every segment in the history is registered as handled, none is spoken,
        and the rebuilt session stays silent until the next user input.
        Returns the new session and the display text to redraw.
        """
        previous = self.get(session_id)
        session = self._new_session(session_id, history=previous.history)
        display = session.replay(previous.history)
        self._sessions[session_id] = session
        self._logger.info(
            "session_reattached",
            extra={"session_id": session_id, "replayed_chunks": len(previous.history), "known": len(session.ledger)},
        )
        return session, display

    def close(self, session_id: str) -> None:
        """Discard a session, stopping playback first if it is being heard."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        if self._orchestrator.is_serving(session_id):
            self._orchestrator.stop()
        if self._active_session_id == session_id:
            self._active_session_id = None
        session.history.clear()
        self._logger.info("session_closed", extra={"session_id": session_id})

    def set_active(self, session_id: str | None) -> None:
        """Make ``session_id`` the only session that may be heard."""
        previous = self._active_session_id
        if previous == session_id:
            return
        self._active_session_id = session_id
        if previous is not None and self._orchestrator.is_serving(previous):
            self._orchestrator.stop()

    def set_voice_output_enabled(self, enabled: bool) -> None:
        self._voice_output_enabled = enabled
        if not enabled:
            self._orchestrator.stop()

    def stop_speaking(self) -> None:
        self._orchestrator.stop()

    def speak(self, session_id: str, text: str) -> bool:
        if not self._voice_output_enabled or session_id != self._active_session_id:
            return False
        return self._orchestrator.enqueue(text, source=session_id)

    def _new_session(self, session_id: str, *, history: ReplayHistory | None = None) -> TerminalSession:
        return TerminalSession(
            session_id,
            config=self._config,
            router=self,
            history=history,
            logger=self._logger,
        )
