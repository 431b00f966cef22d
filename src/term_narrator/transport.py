"""Child-process transport that delivers raw terminal output in arbitrary chunks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence


class TransportError(RuntimeError):
    """Raised when the child process cannot be started or written to."""


class ChildProcessTransport:
    """Runs a command with merged stdout/stderr and exposes its output as byte chunks."""

    def __init__(
        self,
        argv: Sequence[str],
        *,
        read_size: int = 4_096,
        logger: logging.Logger | None = None,
    ) -> None:
        if not argv:
            raise ValueError("A command is required")
        self._argv = list(argv)
        self._read_size = read_size
        self._logger = logger or logging.getLogger("term_narrator.transport")
        self._process: asyncio.subprocess.Process | None = None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process else None

    async def start(self) -> None:
        if self._process is not None:
            return
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            raise TransportError(f"Unable to start {self._argv[0]}: {exc}") from exc
        self._logger.info("transport_started", extra={"argv": self._argv, "pid": self._process.pid})

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield output as it arrives until the child closes its stdout."""
        process = self._require_process()
        assert process.stdout is not None
        while True:
            data = await process.stdout.read(self._read_size)
            if not data:
                return
            yield data

    async def write(self, text: str) -> None:
        process = self._require_process()
        if process.stdin is None or process.stdin.is_closing():
            raise TransportError("Child process input is closed")
        process.stdin.write(text.encode("utf-8"))
        try:
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise TransportError("Child process stopped reading input") from exc

    def close_input(self) -> None:
        process = self._require_process()
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()

    async def wait(self) -> int:
        process = self._require_process()
        returncode = await process.wait()
        self._logger.info("transport_exited", extra={"returncode": returncode})
        return returncode

    def terminate(self) -> None:
        if self._process is not None and self._process.returncode is None:
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass

    def _require_process(self) -> asyncio.subprocess.Process:
        if self._process is None:
            raise TransportError("Transport has not been started")
        return self._process
