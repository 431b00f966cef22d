from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest

CHILD_SCRIPT = (
    "import sys; "
    "sys.stdout.buffer.write('\\u25cf \\u00abtts\\u00bbHello from the child.\\u00ab/tts\\u00bb\\n'.encode('utf-8'))"
)


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("term_narrator.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_scan_lists_segments_from_transcript(tmp_path: Path) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from term_narrator.main import app

    transcript = tmp_path / "session.log"
    transcript.write_bytes(
        "\x1b[2K● «tts»I updated the parser.«/tts»\r\n«tts»const x = 1;«/tts»\r\n".encode("utf-8")
    )

    result = typer_testing.CliRunner().invoke(app, ["scan", str(transcript)], catch_exceptions=False)

    assert result.exit_code == 0
    assert "I updated the parser." in result.stdout
    assert "const x = 1;" in result.stdout


def test_scan_tolerates_invalid_bytes_in_transcript(tmp_path: Path) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from term_narrator.main import app

    transcript = tmp_path / "session.log"
    transcript.write_bytes(b"binary \xff\xfe noise\r\n" + "«tts»Narration survives the noise.«/tts»".encode("utf-8"))

    result = typer_testing.CliRunner().invoke(app, ["scan", str(transcript)], catch_exceptions=False)

    assert result.exit_code == 0
    assert "Narration survives the noise." in result.stdout


def test_say_reports_unknown_backend(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    import term_narrator.main as main

    monkeypatch.setattr(main.settings, "tts_backend", "bogus")

    result = typer_testing.CliRunner().invoke(main.app, ["say", "Hello there."], catch_exceptions=False)

    assert result.exit_code == 1
    assert "bogus" in result.stdout


def test_run_without_voice_passes_output_through() -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from term_narrator.main import app

    result = typer_testing.CliRunner().invoke(
        app,
        ["run", "--no-voice", "--", sys.executable, "-c", CHILD_SCRIPT],
        catch_exceptions=False,
    )

    assert result.exit_code == 0
    assert "Hello from the child." in result.stdout
    assert "«tts»" not in result.stdout


def test_run_reports_missing_command() -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from term_narrator.main import app

    result = typer_testing.CliRunner().invoke(
        app,
        ["run", "--no-voice", "--", "definitely-not-a-real-binary-xyz"],
        catch_exceptions=False,
    )

    assert result.exit_code == 1
    assert "definitely-not-a-real-binary-xyz" in result.stdout
