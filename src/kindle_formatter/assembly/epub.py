"""EPUB3 container writer built on ebooklib."""

from __future__ import annotations

import base64
import binascii
import hashlib
import html
import logging
import posixpath
import shutil
import tempfile
from collections.abc import Sequence
from pathlib import Path

from ebooklib import epub

from ..core.config import ConversionSettings
from ..core.errors import AssemblyError
from ..core.markup import parse
from ..core.models import NormalizedDocument
from ..images.mime import extension_from_type, is_remote, to_data_uri
from ..templates.css import BASE_KINDLE_CSS

LOGGER = logging.getLogger(__name__)

STYLESHEET = "styles/kindle.css"


def chapter_file_name(index: int) -> str:
    """File name of the ``index``-th chapter (1-based) inside the book."""
    return f"chapter_{index}.xhtml"


class EpubAssembler:
    """Write normalized documents into a reflowable EPUB3 book.

    Inline ``data:`` images are moved into the container as image items,
    stored once per distinct payload.
    """

    def __init__(self, settings: ConversionSettings | None = None) -> None:
        self._settings = settings or ConversionSettings()

    def assemble(
        self,
        documents: Sequence[NormalizedDocument],
        output_path: Path,
        *,
        title: str,
        author: str,
    ) -> Path:
        """Write ``documents`` as one book at ``output_path``."""
        if not documents:
            raise AssemblyError("No documents to assemble")

        book = self._build_book(documents, title=title, author=author)
        output_path = Path(output_path)
        with tempfile.TemporaryDirectory(prefix="kindle-epub-") as workdir:
            staged = Path(workdir) / "book.epub"
            try:
                epub.write_epub(str(staged), book, {})
                output_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(staged, output_path)
            except Exception as exc:  # pylint: disable=broad-except
                raise AssemblyError(f"Could not write EPUB: {exc}") from exc
        LOGGER.info(
            "Wrote EPUB %s with %d chapter(s)", output_path.name, len(documents)
        )
        return output_path

    def _build_book(
        self, documents: Sequence[NormalizedDocument], *, title: str, author: str
    ) -> epub.EpubBook:
        book = epub.EpubBook()
        digest = hashlib.sha256(title.encode("utf-8"))
        for document in documents:
            digest.update(document.body_html.encode("utf-8"))
        book.set_identifier(f"kindle-formatter-{digest.hexdigest()[:16]}")
        book.set_title(title)
        book.set_language(self._settings.language)
        book.add_author(author)
        book.add_metadata(None, "meta", "reflowable", {"property": "rendition:layout"})
        book.add_metadata(None, "meta", "auto", {"property": "rendition:spread"})

        stylesheet = epub.EpubItem(
            uid="style",
            file_name=STYLESHEET,
            media_type="text/css",
            content=_combined_css(documents),
        )
        book.add_item(stylesheet)

        image_cache: dict[str, str] = {}
        chapters: list[epub.EpubHtml] = []
        for index, document in enumerate(documents, start=1):
            body = extract_data_images(document.body_html, book, image_cache, index)
            chapter = epub.EpubHtml(
                title=document.title,
                file_name=chapter_file_name(index),
                lang=self._settings.language,
                content=_chapter_markup(document, body),
            )
            chapter.add_item(stylesheet)
            book.add_item(chapter)
            chapters.append(chapter)

        book.toc = chapters
        book.spine = ["nav", *chapters]
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        return book


def _combined_css(documents: Sequence[NormalizedDocument]) -> str:
    parts = [BASE_KINDLE_CSS]
    for document in documents:
        if document.css and document.css not in parts:
            parts.append(document.css)
    return "\n".join(parts)


def _chapter_markup(document: NormalizedDocument, body: str) -> str:
    meta_lines = []
    if document.date:
        meta_lines.append(f"<div>{html.escape(document.date)}</div>")
    if document.sender:
        meta_lines.append(f"<div>From: {html.escape(document.sender)}</div>")
    meta = f'<div class="kindle-meta">{"".join(meta_lines)}</div>' if meta_lines else ""
    wrapped = f'<div class="content-wrapper">{meta}{body}</div>'
    if document.is_table_of_contents:
        wrapped = f'<nav epub:type="toc" id="toc">{wrapped}</nav>'
    return wrapped


def extract_data_images(
    body_html: str, book: epub.EpubBook, image_cache: dict[str, str], chapter_index: int
) -> str:
    """Replace ``data:image`` sources with image items stored in ``book``."""
    if "data:image" not in body_html:
        return body_html
    soup = parse(body_html)
    counter = 0
    for img in soup.find_all("img", src=True):
        src = str(img["src"])
        if not src.startswith("data:image/") or ";base64," not in src:
            continue
        header, encoded = src.split(",", 1)
        mime_type = header[len("data:") :].split(";", 1)[0].lower()
        extension = extension_from_type(mime_type)
        if extension == "bin":
            continue
        try:
            payload = base64.b64decode(encoded, validate=False)
        except (binascii.Error, ValueError):
            LOGGER.warning("Skipping undecodable inline image in chapter %d", chapter_index)
            continue
        digest = hashlib.sha256(payload).hexdigest()
        file_name = image_cache.get(digest)
        if file_name is None:
            file_name = f"images/chapter_{chapter_index}_{counter}.{extension}"
            counter += 1
            book.add_item(
                epub.EpubItem(
                    uid=file_name.replace("/", "_"),
                    file_name=file_name,
                    media_type=mime_type,
                    content=payload,
                )
            )
            image_cache[digest] = file_name
        img["src"] = file_name
    return str(soup)


def read_epub_body(path: Path) -> str:
    """Return the spine documents of an EPUB as one HTML fragment.

    Images stored in the container come back as ``data:`` URIs so the
    fragment can be assembled into another book.
    """
    try:
        book = epub.read_epub(str(path), {"ignore_ncx": True})
    except Exception as exc:  # pylint: disable=broad-except
        raise AssemblyError(f"Could not read EPUB {Path(path).name}: {exc}") from exc

    parts: list[str] = []
    for idref, _linear in book.spine:
        item = book.get_item_with_id(idref)
        if not isinstance(item, epub.EpubHtml) or not item.is_chapter():
            continue
        soup = parse(item.get_body_content().decode("utf-8", errors="replace"))
        base = posixpath.dirname(item.get_name())
        for img in soup.find_all("img", src=True):
            src = str(img["src"])
            if src.startswith("data:") or is_remote(src):
                continue
            href = posixpath.normpath(posixpath.join(base, src.split("#", 1)[0]))
            image = book.get_item_with_href(href)
            if image is None:
                LOGGER.debug("Image %s missing from %s", href, Path(path).name)
                continue
            img["src"] = to_data_uri(image.get_content(), image.media_type)
        parts.append(str(soup))
    LOGGER.debug("Read %d document(s) from %s", len(parts), Path(path).name)
    return "\n".join(parts)


__all__ = ["EpubAssembler", "chapter_file_name", "extract_data_images", "read_epub_body"]
