"""WAV playback through a command-line audio player."""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from pathlib import Path

_PLAYER_ARGS: dict[str, tuple[str, ...]] = {
    "paplay": (),
    "aplay": ("-q",),
    "afplay": (),
    "ffplay": ("-nodisp", "-autoexit", "-loglevel", "quiet"),
}


class AudioPlaybackError(RuntimeError):
    """Raised when the player process exits with a failure status."""


def resolve_player(executable: str | None = None) -> list[str]:
    """Return the argv prefix for the configured or first available player."""
    candidates = [executable] if executable else list(_PLAYER_ARGS)
    for name in candidates:
        path = shutil.which(name)
        if path:
            return [path, *_PLAYER_ARGS.get(Path(name).name, ())]

    if executable:
        raise RuntimeError(f"Audio player not found: {executable}")
    raise RuntimeError(
        "No audio player found. Install paplay, aplay, afplay, or ffplay, "
        "or set TERM_NARRATOR_AUDIO_PLAYER."
    )


class SubprocessAudioUnit:
    """A player process working through one temporary WAV file."""

    def __init__(self, process: asyncio.subprocess.Process, wav_path: Path) -> None:
        self._process = process
        self._wav_path = wav_path
        self._closed = False

    async def wait(self) -> None:
        returncode = await self._process.wait()
        self._wav_path.unlink(missing_ok=True)
        if returncode != 0 and not self._closed:
            raise AudioPlaybackError(f"Audio player exited with code {returncode}")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._process.returncode is None:
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass
        self._wav_path.unlink(missing_ok=True)


class SubprocessAudioOutputDevice:
    """Plays WAV bytes by handing a temporary file to a player executable."""

    def __init__(self, player: str | None = None) -> None:
        self._command = resolve_player(player)

    @property
    def command(self) -> list[str]:
        return list(self._command)

    async def start(self, audio: bytes) -> SubprocessAudioUnit:
        fd, name = tempfile.mkstemp(prefix="term_narrator_", suffix=".wav")
        wav_path = Path(name)
        with os.fdopen(fd, "wb") as handle:
            handle.write(audio)

        try:
            process = await asyncio.create_subprocess_exec(
                *self._command,
                str(wav_path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError:
            wav_path.unlink(missing_ok=True)
            raise
        return SubprocessAudioUnit(process, wav_path)
