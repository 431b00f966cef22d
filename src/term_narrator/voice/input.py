"""Push-to-talk dictation of terminal input."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .interfaces import SpeechRecognizer


@dataclass(slots=True)
class DictationEvent:
    """Recognized utterance ready to be typed into a terminal session."""

    transcript: str


class MicrophoneSource(Protocol):
    """Represents a microphone-backed audio source."""

    def read_chunk(self) -> bytes:
        """Read and return the next captured utterance."""


class DictationService:
    """Turns one captured utterance into terminal input text."""

    def __init__(self, recognizer: SpeechRecognizer, *, logger: logging.Logger | None = None) -> None:
        self._recognizer = recognizer
        self._logger = logger or logging.getLogger("term_narrator.voice.input")

    def capture_once(self, microphone: MicrophoneSource) -> DictationEvent | None:
        """Capture one utterance and transcribe it; None when nothing usable was heard."""
        return self.process_audio(microphone.read_chunk())

    def process_audio(self, audio_bytes: bytes) -> DictationEvent | None:
        if not audio_bytes:
            return None

        try:
            transcript = self._recognizer.transcribe(audio_bytes)
        except RuntimeError:
            self._logger.exception("dictation_failed", extra={"audio_bytes": len(audio_bytes)})
            return None

        normalized = " ".join(transcript.split())
        if not normalized:
            return None
        self._logger.info("dictation_recognized", extra={"chars": len(normalized)})
        return DictationEvent(transcript=normalized)
