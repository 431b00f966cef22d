"""Serialized, cancellable speech playback for narrated segments."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass

from .interfaces import AudioOutputDevice, AudioUnit, SpeechSynthesizer


@dataclass(slots=True)
class PlaybackConfig:
    """Configurable controls for queued speech."""

    min_chars: int = 3


@dataclass(frozen=True, slots=True)
class PlaybackItem:
    """Queued speech text and the terminal session it came from."""

    text: str
    source: str | None = None


class PlaybackOrchestrator:
    """FIFO speech queue that synthesizes and plays one item at a time.

    All methods must be called from the event loop thread. ``stop`` is valid in
    any state: it empties the queue and closes the playing audio unit at once.
    A synthesis call already in flight is allowed to finish and its audio is
    dropped.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        output_device: AudioOutputDevice,
        config: PlaybackConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._output_device = output_device
        self._config = config or PlaybackConfig()
        self._logger = logger or logging.getLogger("term_narrator.voice.output")

        self._queue: deque[PlaybackItem] = deque()
        self._current: PlaybackItem | None = None
        self._active_unit: AudioUnit | None = None
        self._processing = False
        self._generation = 0
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def is_speaking(self) -> bool:
        return self._processing

    @property
    def pending(self) -> int:
        """Number of queued items not yet started."""
        return len(self._queue)

    def is_serving(self, source: str) -> bool:
        """Whether ``source`` owns the current item or anything still queued."""
        if self._current is not None and self._current.source == source:
            return True
        return any(item.source == source for item in self._queue)

    def enqueue(self, text: str, *, source: str | None = None) -> bool:
        """Queue text for speech and start processing if idle.

        Returns False when the text is too short to be worth speaking or when
        no event loop is running to play it.
        """
        normalized = " ".join(text.split())
        if len(normalized) < self._config.min_chars:
            self._logger.debug("playback_skipped_short", extra={"text": normalized})
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.error("playback_no_event_loop", extra={"source": source})
            return False

        self._queue.append(PlaybackItem(text=normalized, source=source))
        self._logger.info("playback_enqueued", extra={"source": source, "queue_size": len(self._queue)})

        if not self._processing:
            task = loop.create_task(
                self._process(self._generation),
                name="playback-orchestrator",
            )
            self._processing = True
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return True

    def stop(self) -> None:
        """Discard the queue, halt playback, and return to idle."""
        dropped = len(self._queue)
        unit = self._active_unit

        self._queue.clear()
        self._generation += 1
        self._active_unit = None
        self._current = None
        self._processing = False

        if unit is not None:
            unit.close()
        if dropped or unit is not None:
            self._logger.info("playback_stopped", extra={"dropped": dropped, "interrupted": unit is not None})

    async def wait_idle(self) -> None:
        """Wait until every processing loop, including stopped ones, has returned."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _process(self, generation: int) -> None:
        try:
            while self._queue and generation == self._generation:
                item = self._queue.popleft()
                self._current = item
                await self._play_item(item, generation)
        finally:
            if generation == self._generation:
                self._current = None
                self._processing = False

    async def _play_item(self, item: PlaybackItem, generation: int) -> None:
        try:
            result = await self._synthesizer.synthesize(item.text)
        except Exception:  # noqa: BLE001 - a broken backend must not end the queue.
            self._logger.exception("synthesis_failed", extra={"source": item.source, "text": item.text})
            return

        if generation != self._generation:
            self._logger.debug("synthesis_discarded", extra={"source": item.source})
            return
        if not result.success:
            self._logger.error("synthesis_failed", extra={"source": item.source, "error": result.error})
            return

        try:
            unit = await self._output_device.start(result.audio)
        except Exception:  # noqa: BLE001
            self._logger.exception("playback_failed", extra={"source": item.source})
            return

        if generation != self._generation:
            unit.close()
            return

        self._active_unit = unit
        self._logger.info("playback_started", extra={"source": item.source, "chars": len(item.text)})
        try:
            await unit.wait()
            if generation == self._generation:
                self._logger.info("playback_finished", extra={"source": item.source})
        except Exception:  # noqa: BLE001
            self._logger.exception("playback_failed", extra={"source": item.source})
        finally:
            if self._active_unit is unit:
                self._active_unit = None
            unit.close()
