"""Text-to-speech backend that shells out to the Piper CLI."""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from pathlib import Path

from .interfaces import SynthesisResult


class PiperSpeechSynthesizer:
    """Feed text to ``piper`` on stdin and collect the WAV it writes."""

    def __init__(self, *, model_path: str | None, binary: str = "piper", timeout_seconds: float = 60.0) -> None:
        binary_path = shutil.which(binary)
        if binary_path is None:
            raise RuntimeError(f"Piper binary not found: {binary}. Install piper or set TERM_NARRATOR_PIPER_BINARY.")
        if not model_path or not Path(model_path).expanduser().exists():
            raise RuntimeError("Piper voice model not found. Set TERM_NARRATOR_PIPER_MODEL to an installed .onnx voice.")

        self._binary = binary_path
        self._model_path = str(Path(model_path).expanduser())
        self._timeout_seconds = timeout_seconds

    async def synthesize(self, text: str) -> SynthesisResult:
        fd, name = tempfile.mkstemp(prefix="term_narrator_tts_", suffix=".wav")
        os.close(fd)
        output_path = Path(name)
        try:
            return await self._run(text, output_path)
        finally:
            output_path.unlink(missing_ok=True)

    async def _run(self, text: str, output_path: Path) -> SynthesisResult:
        try:
            process = await asyncio.create_subprocess_exec(
                self._binary,
                "--model",
                self._model_path,
                "--output_file",
                str(output_path),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return SynthesisResult.failed(f"Unable to start piper: {exc}")

        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(text.encode("utf-8")),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return SynthesisResult.failed(f"Piper timed out after {self._timeout_seconds}s")

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip().splitlines()
            suffix = f": {detail[-1]}" if detail else ""
            return SynthesisResult.failed(f"Piper exited with code {process.returncode}{suffix}")

        audio = output_path.read_bytes() if output_path.exists() else b""
        if not audio:
            return SynthesisResult.failed("Piper produced no audio")
        return SynthesisResult.ok(audio)
