"""Bounded record of segment contents that were already handled."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class SpokenLedger:
    """Insertion-ordered set of handled segments with half-eviction on overflow.

    A segment is recorded the first time it is seen, whether or not it ends up
    being spoken, so a decision about a piece of content is never revisited.
    """

    def __init__(self, max_entries: int = 1_000, initial: Iterable[str] = ()) -> None:
        if max_entries < 2:
            raise ValueError("max_entries must be at least 2")
        self._max_entries = max_entries
        self._entries: dict[str, None] = {}
        for text in initial:
            self.record(text)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def should_speak(self, text: str) -> bool:
        """Record ``text`` and report whether it is new."""
        if text in self._entries:
            return False
        self.record(text)
        return True

    def record(self, text: str) -> None:
        self._entries[text] = None
        if len(self._entries) > self._max_entries:
            keep = list(self._entries)[-(self._max_entries // 2) :]
            self._entries = dict.fromkeys(keep)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, text: object) -> bool:
        return text in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
