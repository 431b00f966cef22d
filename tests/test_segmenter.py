import random

from term_narrator.narration import StreamSegmenter, strip_control_sequences, strip_markers

RAW_OUTPUT = (
    "\x1b]0;claude\x07\x1b[2K\r● «tts»I updated the parser.«/tts»\r\n"
    "\x1b[?25l«tts»Tests now pass\x1b[0m on CI.«/tts» done\r\n"
    "«tts»const x = 1;«/tts»"
)
EXPECTED = ["I updated the parser.", "Tests now pass on CI.", "const x = 1;"]


def _segments(chunks: list[str]) -> list[str]:
    segmenter = StreamSegmenter()
    found: list[str] = []
    for chunk in chunks:
        found.extend(segmenter.ingest(chunk))
    return found


def test_segment_split_across_two_chunks() -> None:
    segmenter = StreamSegmenter()

    first = segmenter.ingest("...«tts»Hello wo")
    second = segmenter.ingest("rld.«/tts»...")

    assert first == []
    assert second == ["Hello world."]


def test_markers_split_mid_token() -> None:
    assert _segments(["status «t", "ts»Hi there friend«/t", "ts» tail"]) == ["Hi there friend"]


def test_every_two_way_split_yields_same_segments() -> None:
    for index in range(len(RAW_OUTPUT) + 1):
        assert _segments([RAW_OUTPUT[:index], RAW_OUTPUT[index:]]) == EXPECTED, index


def test_random_rechunking_yields_same_segments() -> None:
    rng = random.Random(7)
    for _ in range(200):
        cuts = sorted(rng.sample(range(1, len(RAW_OUTPUT)), k=rng.randint(1, 12)))
        chunks = [RAW_OUTPUT[start:end] for start, end in zip([0, *cuts], [*cuts, len(RAW_OUTPUT)])]
        assert _segments(chunks) == EXPECTED


def test_single_character_chunks() -> None:
    assert _segments(list(RAW_OUTPUT)) == EXPECTED


def test_escape_sequence_split_across_chunks_is_removed() -> None:
    assert _segments(["«tts»Build \x1b[3", "2mfinished.«/tts»"]) == ["Build finished."]


def test_buffer_cleared_without_open_marker() -> None:
    segmenter = StreamSegmenter()

    segmenter.ingest("plain compiler output with no narration\r\n")

    assert segmenter.pending == ""


def test_partial_open_marker_is_kept() -> None:
    segmenter = StreamSegmenter()

    segmenter.ingest("lots of output before «tt")

    assert segmenter.pending == "«tt"


def test_unclosed_segment_buffer_is_capped() -> None:
    segmenter = StreamSegmenter(max_buffer_chars=100)

    segmenter.ingest("«tts»" + "a" * 5_000)

    assert len(segmenter.pending) == 100
    assert segmenter.pending == "a" * 100


def test_empty_segments_are_not_emitted() -> None:
    assert _segments(["«tts»   «/tts»«tts»Real words here«/tts»"]) == ["Real words here"]


def test_custom_markers() -> None:
    segmenter = StreamSegmenter(open_marker="<say>", close_marker="</say>")

    assert segmenter.ingest("x <say>Custom markers work.</say> y") == ["Custom markers work."]


def test_reset_drops_pending_text() -> None:
    segmenter = StreamSegmenter()
    segmenter.ingest("«tts»Half a sent")

    segmenter.reset()

    assert segmenter.ingest("ence.«/tts»") == []


def test_strip_control_sequences() -> None:
    raw = "\x1b[1;32mgreen\x1b[0m\x1b]2;title\x1b\\ \x1bPq#0\x1b\\text\x07\tend\r\n\x1b(B\x1b7"

    assert strip_control_sequences(raw) == "green text end  "


def test_strip_markers_for_display() -> None:
    assert strip_markers("● «tts»Hello there.«/tts»\r\n") == "● Hello there.\r\n"


def test_long_string_sequences_are_removed_at_any_split() -> None:
    samples = [
        "«tts»Hello \x1b]0;" + "x" * 600 + "\x07world again.«/tts»",
        "«tts»Hello \x1bPq" + "#" * 600 + "\x1b\\world again.«/tts»",
        "«tts»Before the title.«/tts»\x1b]2;" + "y" * 400 + "\x1b\\«tts»After the title.«/tts»",
    ]
    expected = [["Hello world again."], ["Hello world again."], ["Before the title.", "After the title."]]

    for raw, segments in zip(samples, expected):
        assert _segments([raw]) == segments
        for index in range(len(raw) + 1):
            assert _segments([raw[:index], raw[index:]]) == segments, index
        assert _segments([raw[:100], raw[100:350], raw[350:500], raw[500:]]) == segments


def test_unterminated_long_title_does_not_leak_into_buffer() -> None:
    segmenter = StreamSegmenter()

    segmenter.ingest("«tts»Half \x1b]0;" + "z" * 300)
    segmenter.ingest("z" * 300)

    assert "z" not in segmenter.pending
