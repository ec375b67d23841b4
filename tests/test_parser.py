"""Tests for RFC822 parsing into parsed newsletter messages."""

from __future__ import annotations

from email.message import EmailMessage
from pathlib import Path

import pytest

from kindle_formatter.core.errors import InputError
from kindle_formatter.core.models import Disposition
from kindle_formatter.ingestion import EmlParser

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _newsletter_bytes() -> bytes:
    message = EmailMessage()
    message["Subject"] = "Stratechery: Aggregation Theory"
    message["From"] = "Ben Thompson <email@stratechery.com>"
    message["Date"] = "Mon, 03 Mar 2025 08:00:00 +0000"
    message.set_content("Hello plain world.")
    message.add_alternative(
        '<html><body><p>Hello <strong>world</strong></p><img src="cid:img1"></body></html>',
        subtype="html",
    )
    html_part = message.get_payload()[1]
    html_part.add_related(PNG_BYTES, "image", "png", cid="<img1>", filename="chart.png")
    message.add_attachment(b"%PDF-1.4", maintype="application", subtype="pdf", filename="notes.pdf")
    return message.as_bytes()


def test_parser_extracts_headers_bodies_and_attachments() -> None:
    parsed = EmlParser().parse(_newsletter_bytes())

    assert parsed.subject == "Stratechery: Aggregation Theory"
    assert parsed.sender == "Ben Thompson <email@stratechery.com>"
    assert parsed.date == "Monday, March 3, 2025"
    assert parsed.text_body == "Hello plain world."
    assert "<strong>world</strong>" in (parsed.html_body or "")
    assert parsed.error is None

    by_type = {attachment.mime_type: attachment for attachment in parsed.attachments}
    image = by_type["image/png"]
    assert image.content_id == "img1"
    assert image.filename == "chart.png"
    assert image.payload == PNG_BYTES
    document = by_type["application/pdf"]
    assert document.disposition is Disposition.ATTACHMENT
    assert document.filename == "notes.pdf"


def test_parser_keeps_raw_date_when_unparseable() -> None:
    raw = (
        b"Subject: Weekly\r\n"
        b"From: news@example.com\r\n"
        b"Date: sometime last week\r\n"
        b"MIME-Version: 1.0\r\n"
        b"Content-Type: text/plain; charset=utf-8\r\n"
        b"\r\n"
        b"Body\r\n"
    )

    parsed = EmlParser().parse(raw)

    assert parsed.date == "sometime last week"
    assert parsed.sender == "news@example.com"
    assert parsed.html_body is None


def test_parse_file_rejects_missing_and_empty_files(tmp_path: Path) -> None:
    parser = EmlParser()
    with pytest.raises(InputError):
        parser.parse_file(tmp_path / "missing.eml")

    empty = tmp_path / "empty.eml"
    empty.write_bytes(b"")
    with pytest.raises(InputError):
        parser.parse_file(empty)


def test_parse_file_reads_eml(tmp_path: Path) -> None:
    path = tmp_path / "issue.eml"
    path.write_bytes(_newsletter_bytes())

    parsed = EmlParser().parse_file(path)

    assert parsed.subject.startswith("Stratechery")
    assert len(parsed.attachments) == 2
