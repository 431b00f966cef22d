import pytest

from term_narrator.narration import SpokenLedger


def test_first_sighting_is_spoken_once() -> None:
    ledger = SpokenLedger()

    assert ledger.should_speak("Hello there.") is True
    assert ledger.should_speak("Hello there.") is False
    assert "Hello there." in ledger


def test_overflow_keeps_newest_half_in_order() -> None:
    ledger = SpokenLedger(max_entries=4)

    for text in ["a", "b", "c", "d", "e"]:
        ledger.record(text)

    assert list(ledger) == ["d", "e"]
    assert ledger.should_speak("a") is True


def test_size_never_exceeds_ceiling() -> None:
    ledger = SpokenLedger(max_entries=100)

    for index in range(10_000):
        ledger.should_speak(f"segment number {index}")
        assert len(ledger) <= 100

    assert "segment number 9999" in ledger


def test_preseeded_ledger_rejects_known_content() -> None:
    first = SpokenLedger()
    first.record("Already said this.")

    second = SpokenLedger(initial=first)

    assert second.should_speak("Already said this.") is False
    assert second.should_speak("Something new.") is True


def test_clear_forgets_everything() -> None:
    ledger = SpokenLedger()
    ledger.record("Hello there.")

    ledger.clear()

    assert len(ledger) == 0
    assert ledger.should_speak("Hello there.") is True


def test_rejects_tiny_ceiling() -> None:
    with pytest.raises(ValueError):
        SpokenLedger(max_entries=1)
