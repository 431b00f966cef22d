"""Contracts for speech synthesis, audio output, and speech recognition."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class SynthesisResult:
    """Outcome of one synthesis call: audio bytes on success, an error message otherwise."""

    success: bool
    audio: bytes = b""
    error: str | None = None

    @classmethod
    def ok(cls, audio: bytes) -> SynthesisResult:
        return cls(success=True, audio=audio)

    @classmethod
    def failed(cls, error: str) -> SynthesisResult:
        return cls(success=False, error=error)


class SpeechSynthesizer(Protocol):
    """Converts text into playable audio."""

    async def synthesize(self, text: str) -> SynthesisResult:
        """Return WAV audio for the given text, or a failed result."""


class AudioUnit(Protocol):
    """One playing piece of audio."""

    async def wait(self) -> None:
        """Resolve when playback finishes or the unit is closed; raise on playback failure."""

    def close(self) -> None:
        """Halt output immediately and release the underlying resource."""


class AudioOutputDevice(Protocol):
    """Interface for a speaker/audio sink."""

    async def start(self, audio: bytes) -> AudioUnit:
        """Begin playing ``audio`` and return a handle to it."""


class SpeechRecognizer(Protocol):
    """Converts live or buffered audio into text."""

    def transcribe(self, audio_bytes: bytes) -> str:
        """Return recognized text from raw audio input."""
