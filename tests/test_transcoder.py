"""Tests for the ebook-convert wrapper."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import pytest

from kindle_formatter.assembly import CalibreTranscoder, find_calibre_path
from kindle_formatter.assembly import transcoder as transcoder_module
from kindle_formatter.core.config import ConversionSettings
from kindle_formatter.core.errors import TranscoderError


class FakeRunner:
    """Records calls and writes the target file like ebook-convert would."""

    def __init__(self, *, error: BaseException | None = None, produce: bool = True) -> None:
        self.error = error
        self.produce = produce
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def __call__(self, command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append((command, kwargs))
        if self.error is not None:
            raise self.error
        if self.produce and "--version" not in command:
            Path(command[2]).write_bytes(b"converted")
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")


def test_is_available_uses_configured_calibre_directory() -> None:
    runner = FakeRunner()
    settings = ConversionSettings(calibre_path=Path("/opt/calibre"))

    assert CalibreTranscoder(settings, runner=runner).is_available()
    command, kwargs = runner.calls[0]
    assert command == [str(Path("/opt/calibre") / "ebook-convert"), "--version"]
    assert kwargs["check"] is True


def test_is_available_false_when_tool_missing() -> None:
    runner = FakeRunner(error=FileNotFoundError("ebook-convert"))

    assert not CalibreTranscoder(runner=runner).is_available()


def test_convert_runs_tool_with_timeout(tmp_path: Path) -> None:
    runner = FakeRunner()
    source = tmp_path / "book.epub"
    source.write_bytes(b"epub")
    target = tmp_path / "book.azw3"

    result = CalibreTranscoder(runner=runner).convert(source, target)

    assert result == target
    command, kwargs = runner.calls[0]
    assert command == ["ebook-convert", str(source), str(target)]
    assert kwargs["timeout"] == 300


def test_convert_reports_tool_failure(tmp_path: Path) -> None:
    error = subprocess.CalledProcessError(
        1, ["ebook-convert"], output="", stderr="Converting...\nValueError: bad input"
    )
    transcoder = CalibreTranscoder(runner=FakeRunner(error=error))

    with pytest.raises(TranscoderError, match="ValueError: bad input"):
        transcoder.convert(tmp_path / "a.epub", tmp_path / "a.azw3")


def test_convert_reports_timeout(tmp_path: Path) -> None:
    error = subprocess.TimeoutExpired(["ebook-convert"], 5)
    settings = ConversionSettings(convert_timeout_seconds=5)
    transcoder = CalibreTranscoder(settings, runner=FakeRunner(error=error))

    with pytest.raises(TranscoderError, match="timed out after 5s"):
        transcoder.convert(tmp_path / "a.epub", tmp_path / "a.azw3")


def test_convert_requires_output_file(tmp_path: Path) -> None:
    transcoder = CalibreTranscoder(runner=FakeRunner(produce=False))

    with pytest.raises(TranscoderError, match="no output"):
        transcoder.convert(tmp_path / "a.epub", tmp_path / "a.azw3")


def test_pdf_to_epub_passes_heuristics_language_and_title(tmp_path: Path) -> None:
    runner = FakeRunner()
    settings = ConversionSettings(language="de")

    CalibreTranscoder(settings, runner=runner).pdf_to_epub(
        tmp_path / "report.pdf", tmp_path / "report.epub", title="Report"
    )

    command, _ = runner.calls[0]
    assert command[3:] == ["--enable-heuristics", "--language", "de", "--title", "Report"]


def test_find_calibre_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        transcoder_module.shutil, "which", lambda name: f"/opt/calibre/{name}"
    )
    assert find_calibre_path() == Path("/opt/calibre")

    monkeypatch.setattr(transcoder_module.shutil, "which", lambda name: None)
    monkeypatch.setattr(transcoder_module.sys, "platform", "linux")
    assert find_calibre_path() is None
