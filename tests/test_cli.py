"""Tests for the command line entry point."""

from __future__ import annotations

from email.message import EmailMessage
from pathlib import Path

import pytest

from kindle_formatter import cli
from kindle_formatter.assembly import CalibreTranscoder
from kindle_formatter.core.config import load_app_settings
from kindle_formatter.core.models import BatchReport
from kindle_formatter.pipeline import NewsletterConverter


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fresh settings and no calibre on the test machine."""

    load_app_settings.cache_clear()
    monkeypatch.setattr(CalibreTranscoder, "is_available", lambda self: False)


def _newsletter(path: Path) -> Path:
    message = EmailMessage()
    message["Subject"] = "Stratechery: Aggregation Theory"
    message["From"] = "Ben Thompson <email@stratechery.com>"
    message.set_content(
        '<div class="entry-content"><p>Intro paragraph.</p></div>', subtype="html"
    )
    path.write_bytes(message.as_bytes())
    return path


def test_info_reports_configuration(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["info"])

    output = capsys.readouterr().out
    assert "Format preference: auto" in output
    assert "Calibre: not found" in output


def test_classify_prints_detected_type(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _newsletter(tmp_path / "issue.eml")

    cli.main(["classify", str(source)])

    assert "stratechery (Stratechery" in capsys.readouterr().out


def test_convert_writes_book_and_tally(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _newsletter(tmp_path / "issue.eml")
    target = tmp_path / "books" / "issue.epub"

    cli.main(["convert", str(source), "--format", "epub", "--output", str(target)])

    assert target.is_file()
    assert "Converted 1 file(s), 0 failed." in capsys.readouterr().out


def test_convert_exits_with_error_when_nothing_converted(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["convert", str(tmp_path / "missing.eml")])

    assert excinfo.value.code == 1
    assert "Converted 0 file(s), 1 failed." in capsys.readouterr().out


def test_commands_require_files() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["convert"])

    assert excinfo.value.code == 1


def test_combine_sends_pdfs_to_one_book(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    calls: list[tuple[list[Path], Path | None]] = []

    def fake_combine(self, paths, output_path=None, *, format_preference=None):
        calls.append((list(paths), output_path))
        return BatchReport(failures={str(paths[0]): "broken"})

    monkeypatch.setattr(NewsletterConverter, "combine_pdfs", fake_combine)
    pdfs = [tmp_path / "a.pdf", tmp_path / "b.pdf"]
    target = tmp_path / "papers.epub"

    with pytest.raises(SystemExit):
        cli.main(["convert", *map(str, pdfs), "--combine", "--output", str(target)])

    assert calls == [(pdfs, target)]
    assert "Failed:" in capsys.readouterr().out
