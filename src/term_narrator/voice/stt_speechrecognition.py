"""Speech-to-text backend powered by ``speech_recognition``."""

from __future__ import annotations

import io
from typing import Any

from .input import MicrophoneSource
from .interfaces import SpeechRecognizer

_INSTALL_HINT = "Install extras with: pip install 'term-narrator[voice]'"


def _import_speech_recognition() -> Any:
    try:
        import speech_recognition as sr
    except ImportError as exc:  # pragma: no cover - import guard
        raise RuntimeError(f"Speech recognition backend unavailable. {_INSTALL_HINT}") from exc
    return sr


class SpeechRecognitionRecognizer(SpeechRecognizer):
    """Transcribe WAV bytes with one of the recognizers bundled by speech_recognition."""

    def __init__(self, *, engine: str = "google", language: str = "en-US") -> None:
        self._sr = _import_speech_recognition()
        self._recognizer = self._sr.Recognizer()
        self._recognize = getattr(self._recognizer, f"recognize_{engine}", None)
        if not callable(self._recognize):
            raise RuntimeError(f"Unknown speech_recognition engine: {engine}")
        self._engine = engine
        self._language = language

    def transcribe(self, audio_bytes: bytes) -> str:
        if not audio_bytes:
            return ""
        audio = self._sr.AudioFile(io.BytesIO(audio_bytes))
        with audio as source:
            recorded = self._recognizer.record(source)
        try:
            return self._recognize(recorded, language=self._language)
        except self._sr.UnknownValueError:
            return ""
        except self._sr.RequestError as exc:
            raise RuntimeError(f"Speech recognition request to {self._engine} failed: {exc}") from exc


class SpeechRecognitionMicrophoneSource(MicrophoneSource):
    """Capture one utterance from the default microphone as WAV bytes."""

    def __init__(
        self,
        *,
        phrase_time_limit: float = 5.0,
        timeout: float | None = None,
        sample_rate: int = 16_000,
        adjust_noise_seconds: float = 0.2,
    ) -> None:
        self._sr = _import_speech_recognition()
        self._recognizer = self._sr.Recognizer()
        try:
            self._microphone = self._sr.Microphone(sample_rate=sample_rate)
        except (AttributeError, OSError) as exc:
            raise RuntimeError(f"Microphone unavailable ({exc}). {_INSTALL_HINT}") from exc
        self._phrase_time_limit = phrase_time_limit
        self._timeout = timeout
        self._adjust_noise_seconds = max(0.0, adjust_noise_seconds)

    def read_chunk(self) -> bytes:
        try:
            with self._microphone as source:
                if self._adjust_noise_seconds > 0:
                    self._recognizer.adjust_for_ambient_noise(source, duration=self._adjust_noise_seconds)
                audio = self._recognizer.listen(
                    source,
                    timeout=self._timeout,
                    phrase_time_limit=self._phrase_time_limit,
                )
            return audio.get_wav_data()
        except self._sr.WaitTimeoutError:
            return b""
