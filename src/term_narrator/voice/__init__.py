"""Speech synthesis, playback, and dictation module boundaries."""

from .input import DictationEvent, DictationService, MicrophoneSource
from .interfaces import AudioOutputDevice, AudioUnit, SpeechRecognizer, SpeechSynthesizer, SynthesisResult
from .output import PlaybackConfig, PlaybackItem, PlaybackOrchestrator

__all__ = [
    "AudioOutputDevice",
    "AudioUnit",
    "DictationEvent",
    "DictationService",
    "MicrophoneSource",
    "PlaybackConfig",
    "PlaybackItem",
    "PlaybackOrchestrator",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "SynthesisResult",
]
