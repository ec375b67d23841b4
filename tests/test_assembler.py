"""Tests for EPUB assembly and output naming helpers."""

from __future__ import annotations

import base64
import zipfile
from pathlib import Path

import pytest

from kindle_formatter.assembly import (
    EpubAssembler,
    adjust_output_path,
    extract_author_name,
    generate_collection_title,
    read_epub_body,
    sanitize_title,
)
from kindle_formatter.core.errors import AssemblyError
from kindle_formatter.core.models import NormalizedDocument

PNG_URI = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\nfake").decode("ascii")


def _document(title: str, body: str, **kwargs: object) -> NormalizedDocument:
    return NormalizedDocument(title=title, body_html=body, css=".x { color: black; }", **kwargs)  # type: ignore[arg-type]


def _read(book: Path, suffix: str) -> str:
    with zipfile.ZipFile(book) as archive:
        name = next(entry for entry in archive.namelist() if entry.endswith(suffix))
        return archive.read(name).decode("utf-8")


def test_assemble_writes_chapters_styles_and_images(tmp_path: Path) -> None:
    documents = [
        _document(
            "First issue",
            f'<p>Hello</p><img src="{PNG_URI}" alt="chart">',
            sender="Ben <ben@example.com>",
            date="Monday, March 3, 2025",
        ),
        _document("Second issue", f'<p>Again</p><img src="{PNG_URI}" alt="same chart">'),
    ]
    output = tmp_path / "out" / "book.epub"

    written = EpubAssembler().assemble(documents, output, title="Collection", author="Ben")

    assert written == output
    with zipfile.ZipFile(output) as archive:
        names = archive.namelist()
    assert "mimetype" in names
    assert any(name.endswith("chapter_1.xhtml") for name in names)
    assert any(name.endswith("chapter_2.xhtml") for name in names)
    assert [name for name in names if "/images/" in name] == ["EPUB/images/chapter_1_0.png"]

    first = _read(output, "chapter_1.xhtml")
    assert 'class="kindle-meta"' in first
    assert "From: Ben &lt;ben@example.com&gt;" in first
    assert "images/chapter_1_0.png" in first
    assert "data:image" not in first
    assert "images/chapter_1_0.png" in _read(output, "chapter_2.xhtml")

    css = _read(output, "kindle.css")
    assert ".x { color: black; }" in css


def test_table_of_contents_document_is_wrapped_in_nav(tmp_path: Path) -> None:
    documents = [
        _document("Table of Contents", "<h1>2 Newsletters</h1>", is_table_of_contents=True),
        _document("Issue", '<div id="newsletter-1"><p>Body</p></div>'),
    ]
    output = tmp_path / "collection.epub"

    EpubAssembler().assemble(documents, output, title="2 Newsletters", author="Various")

    assert 'id="toc"' in _read(output, "chapter_1.xhtml")


def test_assemble_requires_documents(tmp_path: Path) -> None:
    with pytest.raises(AssemblyError):
        EpubAssembler().assemble([], tmp_path / "empty.epub", title="Nothing", author="Nobody")


def test_read_epub_body_restores_embedded_images(tmp_path: Path) -> None:
    book = EpubAssembler().assemble(
        [_document("Paper", f'<p>Hello</p><img src="{PNG_URI}" alt="chart">')],
        tmp_path / "paper.epub",
        title="Paper",
        author="Someone",
    )

    body = read_epub_body(book)

    assert "<p>Hello</p>" in body
    assert PNG_URI in body
    assert 'epub:type="toc"' not in body


def test_read_epub_body_rejects_broken_files(tmp_path: Path) -> None:
    broken = tmp_path / "broken.epub"
    broken.write_bytes(b"not a zip")

    with pytest.raises(AssemblyError):
        read_epub_body(broken)


def test_sanitize_title() -> None:
    assert sanitize_title('Stratechery: "Aggregation" / Theory?') == "Stratechery_Aggregation_Theory"
    assert sanitize_title("   ") == "untitled"
    assert sanitize_title(None) == "untitled"


def test_adjust_output_path() -> None:
    assert adjust_output_path(Path("out/book.epub"), "azw3") == Path("out/book.azw3")
    assert adjust_output_path(Path("out/book.azw3"), "epub") == Path("out/book.epub")
    assert adjust_output_path(Path("out/book.epub"), "epub") == Path("out/book.epub")


def test_extract_author_name() -> None:
    assert extract_author_name("John Doe <j@example.com>") == "John Doe"
    assert extract_author_name('"Jane Roe" <jane@example.com>') == "Jane Roe"
    assert extract_author_name("<john.doe@example.com>") == "John Doe"
    assert extract_author_name("") == "Unknown"
    assert extract_author_name("news@example.com") == "news@example.com"


def test_generate_collection_title() -> None:
    assert generate_collection_title(["Only one"]) == "Only one"
    assert (
        generate_collection_title(["Stratechery: A", "Daily update", "Stratechery: B"])
        == "3 Stratechery Collection"
    )
    assert generate_collection_title(["One", "Two"]) == "2 Newsletters"
