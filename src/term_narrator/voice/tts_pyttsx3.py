"""Text-to-speech backend powered by ``pyttsx3``."""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .interfaces import SynthesisResult


@dataclass
class Pyttsx3SpeechSynthesizer:
    """Render text to a WAV file with the local system voice."""

    voice_id: str | None = None
    rate: int | None = None
    volume: float | None = None

    def __post_init__(self) -> None:
        try:
            import pyttsx3
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Voice TTS backend unavailable. Install extras with: pip install 'term-narrator[voice]'"
            ) from exc
        self._pyttsx3 = pyttsx3

    async def synthesize(self, text: str) -> SynthesisResult:
        try:
            audio = await asyncio.to_thread(self._render, text)
        except Exception as exc:  # noqa: BLE001 - driver errors become failed results.
            return SynthesisResult.failed(f"{type(exc).__name__}: {exc}")
        if not audio:
            return SynthesisResult.failed("pyttsx3 produced no audio")
        return SynthesisResult.ok(audio)

    def _render(self, text: str) -> bytes:
        # Drivers bind to the thread that created them, so build the engine here.
        engine = self._pyttsx3.init()
        if self.voice_id:
            engine.setProperty("voice", self.voice_id)
        if self.rate is not None:
            engine.setProperty("rate", self.rate)
        if self.volume is not None:
            engine.setProperty("volume", max(0.0, min(1.0, self.volume)))

        fd, name = tempfile.mkstemp(prefix="term_narrator_tts_", suffix=".wav")
        os.close(fd)
        output_path = Path(name)
        try:
            engine.save_to_file(text, str(output_path))
            engine.runAndWait()
            return output_path.read_bytes()
        finally:
            output_path.unlink(missing_ok=True)
