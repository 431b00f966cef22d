"""CLI entrypoint for term-narrator."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import typer
from rich import print

from term_narrator.config import settings
from term_narrator.session import NarrationConfig, SessionRegistry, TerminalSession
from term_narrator.telemetry import configure_logging
from term_narrator.transport import ChildProcessTransport, TransportError
from term_narrator.voice import DictationService, MicrophoneSource, PlaybackConfig, PlaybackOrchestrator
from term_narrator.voice.interfaces import SpeechSynthesizer

app = typer.Typer(help="Speak the narration an assistant marks in its terminal output")

_SESSION_ID = "main"
logger = logging.getLogger("term_narrator.main")


def _narration_config() -> NarrationConfig:
    return NarrationConfig(
        open_marker=settings.open_marker,
        close_marker=settings.close_marker,
        carry_over_max_chars=settings.carry_over_max_chars,
        spoken_max_entries=settings.spoken_max_entries,
        min_prose_length=settings.min_prose_length,
        replay_max_chunks=settings.replay_max_chunks,
    )


def _build_synthesizer() -> SpeechSynthesizer:
    backend = settings.tts_backend.lower().strip()
    if backend == "piper":
        from term_narrator.voice.tts_piper import PiperSpeechSynthesizer

        return PiperSpeechSynthesizer(model_path=settings.piper_model, binary=settings.piper_binary)
    if backend == "pyttsx3":
        from term_narrator.voice.tts_pyttsx3 import Pyttsx3SpeechSynthesizer

        return Pyttsx3SpeechSynthesizer(
            voice_id=settings.pyttsx3_voice_id,
            rate=settings.pyttsx3_rate,
            volume=settings.pyttsx3_volume,
        )
    raise RuntimeError(f"Unknown TTS backend: {settings.tts_backend!r}. Use 'piper' or 'pyttsx3'.")


def _build_orchestrator() -> PlaybackOrchestrator:
    from term_narrator.voice.audio_player import SubprocessAudioOutputDevice

    return PlaybackOrchestrator(
        synthesizer=_build_synthesizer(),
        output_device=SubprocessAudioOutputDevice(settings.audio_player),
        config=PlaybackConfig(min_chars=settings.speech_min_chars),
    )


def _build_registry() -> SessionRegistry:
    return SessionRegistry(
        _build_orchestrator(),
        config=_narration_config(),
        voice_output_enabled=settings.voice_output_enabled,
    )


def _build_dictation() -> tuple[DictationService, MicrophoneSource]:
    from term_narrator.voice.stt_speechrecognition import (
        SpeechRecognitionMicrophoneSource,
        SpeechRecognitionRecognizer,
    )

    microphone = SpeechRecognitionMicrophoneSource(phrase_time_limit=settings.dictation_phrase_time_limit)
    return DictationService(SpeechRecognitionRecognizer()), microphone


async def _forward_input(
    transport: ChildProcessTransport,
    session: TerminalSession,
    dictation: tuple[DictationService, MicrophoneSource] | None,
) -> None:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    except (OSError, ValueError):
        logger.warning("stdin_not_forwarded")
        transport.close_input()
        return

    while True:
        line = await reader.readline()
        if not line:
            transport.close_input()
            return

        text = line.decode("utf-8", errors="replace")
        if dictation is not None and not text.strip():
            service, microphone = dictation
            event = await asyncio.to_thread(service.capture_once, microphone)
            if event is None:
                continue
            text = f"{event.transcript}\n"

        session.note_user_input()
        try:
            await transport.write(text)
        except TransportError:
            logger.warning("input_forwarding_stopped")
            return


async def _run_session(
    argv: Sequence[str],
    registry: SessionRegistry | None,
    dictation: tuple[DictationService, MicrophoneSource] | None,
) -> int:
    transport = ChildProcessTransport(argv)
    await transport.start()

    if registry is not None:
        session = registry.open(_SESSION_ID)
        registry.set_active(_SESSION_ID)
    else:
        session = TerminalSession(_SESSION_ID, config=_narration_config())

    input_task = asyncio.create_task(_forward_input(transport, session, dictation), name="stdin-forwarder")
    try:
        async for data in transport.chunks():
            sys.stdout.write(session.feed_bytes(data).display)
            sys.stdout.flush()
        returncode = await transport.wait()
    finally:
        input_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await input_task
        transport.terminate()

    if registry is not None:
        await registry.orchestrator.wait_idle()
        registry.close(_SESSION_ID)
    return returncode


@app.command("settings")
def show_settings() -> None:
    """Show effective runtime configuration."""
    print(settings.model_dump())


@app.command()
def run(
    command: list[str] = typer.Argument(..., help="Command to run, e.g. `term-narrator run -- claude`"),
    voice: bool = typer.Option(True, "--voice/--no-voice", help="Speak narration segments"),
    dictate: bool = typer.Option(
        settings.dictation_enabled,
        help="Press Enter on an empty line to dictate the next input",
    ),
) -> None:
    """Run a command, pass its output through, and speak new narration."""
    configure_logging(settings.log_level)
    try:
        registry = _build_registry() if voice else None
        dictation = _build_dictation() if dictate else None
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    try:
        returncode = asyncio.run(_run_session(command, registry, dictation))
    except TransportError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        returncode = 130
    raise typer.Exit(code=returncode)


@app.command()
def scan(
    transcript: Path = typer.Argument(..., exists=True, dir_okay=False, help="Captured raw terminal output"),
) -> None:
    """List the narration segments in a captured transcript without speaking them."""
    session = TerminalSession("scan", config=_narration_config())
    result = session.feed(transcript.read_bytes().decode("utf-8", errors="replace"))
    print({"segments": result.segments, "accepted": result.accepted})


@app.command()
def say(text: str) -> None:
    """Synthesize and play one piece of text."""
    configure_logging(settings.log_level)
    try:
        orchestrator = _build_orchestrator()
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    async def _run() -> bool:
        queued = orchestrator.enqueue(text)
        await orchestrator.wait_idle()
        return queued

    print({"spoken": asyncio.run(_run())})


if __name__ == "__main__":
    app()
