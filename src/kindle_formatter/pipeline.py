"""Per-job orchestration: EML/PDF inputs to Kindle-ready ebooks."""

from __future__ import annotations

import dataclasses
import html
import logging
import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .assembly import (
    CalibreTranscoder,
    EpubAssembler,
    adjust_output_path,
    chapter_file_name,
    extract_author_name,
    generate_collection_title,
    read_epub_body,
    sanitize_title,
)
from .classification import NewsletterClassifier, newsletter_display_name
from .core.config import AppSettings
from .core.errors import ConversionError, ConverterError, InputError, TranscoderError
from .core.interfaces import EbookAssembler, MessageParser, Transcoder
from .core.models import (
    BatchReport,
    ClassificationResult,
    ConversionResult,
    FormatPreference,
    NormalizedDocument,
    ParsedMessage,
)
from .images import ImageResolver, ReferenceIndex
from .ingestion import EmlParser
from .normalize import ContentCleaner, ContentNormalizer, text_to_html
from .templates import TemplateRegistry, default_registry

LOGGER = logging.getLogger(__name__)

COLLECTION_AUTHOR = "Newsletter Collection"
PDF_COLLECTION_AUTHOR = "PDF Collection"
PDF_SOURCE = "PDF Document"


@dataclass(frozen=True, slots=True)
class PreparedNewsletter:
    """A message turned into a document, ready for assembly."""

    source: Path
    message: ParsedMessage
    classification: ClassificationResult
    document: NormalizedDocument

    @property
    def newsletter_type(self) -> str:
        """Publisher type the document was formatted as."""
        return self.classification.type


def _coerce_preference(
    value: FormatPreference | str | None, default: FormatPreference
) -> FormatPreference:
    if value is None:
        return default
    return FormatPreference(value)


def _check_input(source: Path) -> None:
    if not source.is_file():
        raise InputError(f"File not found: {source.name}")
    if source.stat().st_size == 0:
        raise InputError(f"Empty file: {source.name}")


# pylint: disable=too-many-instance-attributes
class NewsletterConverter:
    """Convert newsletters into ebooks one job at a time."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        parser: MessageParser | None = None,
        classifier: NewsletterClassifier | None = None,
        registry: TemplateRegistry | None = None,
        resolver: ImageResolver | None = None,
        cleaner: ContentCleaner | None = None,
        normalizer: ContentNormalizer | None = None,
        assembler: EbookAssembler | None = None,
        transcoder: Transcoder | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._parser = parser or EmlParser()
        self._classifier = classifier or NewsletterClassifier(self._settings.classifier)
        self._registry = registry or default_registry()
        self._resolver = resolver or ImageResolver(self._settings.images)
        self._cleaner = cleaner or ContentCleaner()
        self._normalizer = normalizer or ContentNormalizer()
        self._assembler = assembler or EpubAssembler(self._settings.conversion)
        self._transcoder = transcoder or CalibreTranscoder(self._settings.conversion)

    @property
    def settings(self) -> AppSettings:
        """Settings the converter was built with."""
        return self._settings

    def classify(self, path: Path | str) -> ClassificationResult:
        """Parse ``path`` and report the detected publisher."""
        return self._classifier.classify_message(self._parser.parse_file(Path(path)))

    async def drain(self) -> None:
        """Wait for image downloads still running in background mode."""
        await self._resolver.drain()

    async def prepare(
        self, path: Path | str, *, template_override: str | None = None
    ) -> PreparedNewsletter:
        """Parse an ``.eml`` file and turn it into a normalized document."""
        source = Path(path)
        message = self._parser.parse_file(source)
        return await self.prepare_message(
            message, source=source, template_override=template_override
        )

    async def prepare_message(
        self,
        message: ParsedMessage,
        *,
        source: Path,
        template_override: str | None = None,
    ) -> PreparedNewsletter:
        """Run classification, image resolution, cleanup and normalization."""
        if not message.html_body and not (message.text_body or "").strip():
            raise ConversionError(f"{source.name} has no readable content")

        classification = self._classifier.classify_message(message)
        if template_override and template_override != classification.type:
            LOGGER.info(
                "Using %s template for %s instead of detected %s",
                template_override,
                source.name,
                classification.type,
            )
            classification = ClassificationResult(
                type=template_override,
                display_name=newsletter_display_name(template_override, message.subject),
                confidence=classification.confidence,
            )
        newsletter_type = classification.type

        index = ReferenceIndex.build(message.attachments, message.html_body)
        if message.html_body:
            content = await self._resolver.resolve(message.html_body, index)
            content = self._cleaner.clean(content, newsletter_type, is_html=True)
        else:
            cleaned_text = self._cleaner.clean(
                message.text_body or "", newsletter_type, is_html=False
            )
            content = text_to_html(cleaned_text)

        template = self._registry.get_template(newsletter_type)
        try:
            transformed = template.transform(content) or content
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning(
                "%s template failed for %s, keeping untransformed content: %s",
                newsletter_type,
                source.name,
                exc,
            )
            transformed = content

        body = self._normalizer.normalize(transformed, index.records)
        document = NormalizedDocument(
            title=message.subject or classification.display_name,
            body_html=body,
            css=template.css_text,
            sender=message.sender,
            date=message.date,
        )
        LOGGER.info(
            "Prepared %s as %s (%d image record(s))",
            source.name,
            newsletter_type,
            len(index),
        )
        return PreparedNewsletter(
            source=source,
            message=message,
            classification=classification,
            document=document,
        )

    async def convert_eml(
        self,
        path: Path | str,
        output_path: Path | str | None = None,
        *,
        template_override: str | None = None,
        format_preference: FormatPreference | str | None = None,
    ) -> ConversionResult:
        """Convert one ``.eml`` file into an ebook."""
        preference = _coerce_preference(
            format_preference, self._settings.conversion.format_preference
        )
        prepared = await self.prepare(path, template_override=template_override)
        document = prepared.document
        target = (
            Path(output_path)
            if output_path is not None
            else self._settings.conversion.output_dir
            / f"{sanitize_title(document.title)}.epub"
        )
        final_path, produced = self._write_book(
            [document],
            target,
            title=document.title,
            author=extract_author_name(document.sender),
            preference=preference,
        )
        return ConversionResult(
            source=prepared.source,
            output_path=final_path,
            format=produced,
            requested=preference,
            classification=prepared.classification,
        )

    async def convert_many(
        self,
        paths: Sequence[Path | str],
        output_path: Path | str | None = None,
        *,
        template_override: str | None = None,
        format_preference: FormatPreference | str | None = None,
    ) -> BatchReport:
        """Convert several ``.eml`` files into one book.

        Files are processed in order. Failures are recorded in the report and
        do not stop the batch. With more than one success the book opens with
        a generated table of contents.
        """
        if not paths:
            raise InputError("No EML files provided")
        preference = _coerce_preference(
            format_preference, self._settings.conversion.format_preference
        )
        report = BatchReport()
        prepared: list[PreparedNewsletter] = []
        for position, path in enumerate(paths, start=1):
            LOGGER.info("Processing file %d/%d: %s", position, len(paths), path)
            try:
                prepared.append(
                    await self.prepare(path, template_override=template_override)
                )
            except Exception as exc:  # pylint: disable=broad-except
                LOGGER.error("Failed to process %s: %s", path, exc)
                report.failures[str(path)] = str(exc)

        if not prepared:
            LOGGER.error("No newsletters could be processed")
            return report

        if len(prepared) == 1:
            documents = [prepared[0].document]
            title = prepared[0].document.title
            author = extract_author_name(prepared[0].document.sender)
        else:
            collection = generate_collection_title([item.document.title for item in prepared])
            title = f"{collection} [{datetime.now():%Y-%m-%d}]"
            documents = [build_table_of_contents(prepared, title)]
            documents.extend(
                dataclasses.replace(
                    item.document,
                    body_html=f'<div id="newsletter-{number}">{item.document.body_html}</div>',
                )
                for number, item in enumerate(prepared, start=1)
            )
            author = COLLECTION_AUTHOR

        target = (
            Path(output_path)
            if output_path is not None
            else self._settings.conversion.output_dir / f"{sanitize_title(title)}.epub"
        )
        final_path, produced = self._write_book(
            documents, target, title=title, author=author, preference=preference
        )
        report.output_path = final_path
        report.format = produced
        report.results.extend(
            ConversionResult(
                source=item.source,
                output_path=final_path,
                format=produced,
                requested=preference,
                classification=item.classification,
            )
            for item in prepared
        )
        LOGGER.info(
            "Converted %d of %d newsletter(s) into %s",
            report.succeeded,
            report.total,
            final_path.name,
        )
        return report

    def convert_pdf(
        self,
        path: Path | str,
        output_path: Path | str | None = None,
        *,
        format_preference: FormatPreference | str | None = None,
    ) -> ConversionResult:
        """Convert a PDF with the external tool, bypassing the HTML pipeline."""
        source = Path(path)
        _check_input(source)
        preference = _coerce_preference(
            format_preference, self._settings.conversion.format_preference
        )
        title = source.stem
        target = (
            Path(output_path)
            if output_path is not None
            else self._settings.conversion.output_dir / f"{sanitize_title(title)}.epub"
        )
        with tempfile.TemporaryDirectory(prefix="kindle-pdf-") as workdir:
            epub_path = Path(workdir) / f"{sanitize_title(title)}.epub"
            try:
                self._transcoder.pdf_to_epub(source, epub_path, title=title)
            except TranscoderError as exc:
                raise ConversionError(f"Cannot convert {source.name}: {exc}") from exc
            final_path, produced = self._deliver(epub_path, target, preference)
        return ConversionResult(
            source=source, output_path=final_path, format=produced, requested=preference
        )

    def convert_pdfs(
        self,
        paths: Sequence[Path | str],
        output_dir: Path | str | None = None,
        *,
        format_preference: FormatPreference | str | None = None,
    ) -> BatchReport:
        """Convert PDFs one by one into ``output_dir``."""
        directory = (
            Path(output_dir)
            if output_dir is not None
            else self._settings.conversion.output_dir
        )
        report = BatchReport(output_path=directory)
        for path in paths:
            source = Path(path)
            try:
                result = self.convert_pdf(
                    source,
                    directory / f"{sanitize_title(source.stem)}.epub",
                    format_preference=format_preference,
                )
            except ConverterError as exc:
                LOGGER.error("Failed to convert %s: %s", source.name, exc)
                report.failures[str(path)] = str(exc)
                continue
            report.results.append(result)
            report.format = result.format
        LOGGER.info("Converted %d of %d PDF(s)", report.succeeded, report.total)
        return report

    def combine_pdfs(
        self,
        paths: Sequence[Path | str],
        output_path: Path | str | None = None,
        *,
        format_preference: FormatPreference | str | None = None,
    ) -> BatchReport:
        """Convert several PDFs into one book.

        Every PDF goes through the external tool on its own. With more than
        one success the converted chapters are reassembled behind a
        generated table of contents.
        """
        if not paths:
            raise InputError("No PDF files provided")
        preference = _coerce_preference(
            format_preference, self._settings.conversion.format_preference
        )
        report = BatchReport()
        converted: list[tuple[Path, Path, str]] = []
        with tempfile.TemporaryDirectory(prefix="kindle-pdfs-") as workdir:
            for position, path in enumerate(paths):
                source = Path(path)
                LOGGER.info(
                    "Processing PDF %d/%d: %s", position + 1, len(paths), source.name
                )
                epub_path = Path(workdir) / f"pdf_{position}.epub"
                try:
                    _check_input(source)
                    self._transcoder.pdf_to_epub(source, epub_path, title=source.stem)
                    body = read_epub_body(epub_path)
                except ConverterError as exc:
                    LOGGER.error("Failed to convert %s: %s", source.name, exc)
                    report.failures[str(path)] = str(exc)
                    continue
                converted.append((source, epub_path, body))

            if not converted:
                LOGGER.error("No PDFs could be converted")
                return report

            titles = [source.stem for source, _, _ in converted]
            if len(converted) == 1:
                title = titles[0]
                final_path, produced = self._deliver(
                    converted[0][1], self._target(output_path, title), preference
                )
            else:
                collection = generate_collection_title(titles)
                title = f"{collection} [{datetime.now():%Y-%m-%d}]"
                documents = [build_pdf_table_of_contents(titles, title)]
                documents.extend(
                    NormalizedDocument(
                        title=source.stem,
                        body_html=(
                            f'<div id="pdf-{number}">'
                            f"{self._normalizer.normalize(body)}</div>"
                        ),
                        css="",
                        sender=PDF_SOURCE,
                    )
                    for number, (source, _, body) in enumerate(converted, start=1)
                )
                final_path, produced = self._write_book(
                    documents,
                    self._target(output_path, title),
                    title=title,
                    author=PDF_COLLECTION_AUTHOR,
                    preference=preference,
                )

        report.output_path = final_path
        report.format = produced
        report.results.extend(
            ConversionResult(
                source=source,
                output_path=final_path,
                format=produced,
                requested=preference,
            )
            for source, _, _ in converted
        )
        LOGGER.info(
            "Combined %d of %d PDF(s) into %s",
            report.succeeded,
            report.total,
            final_path.name,
        )
        return report

    def _target(self, output_path: Path | str | None, title: str) -> Path:
        if output_path is not None:
            return Path(output_path)
        return self._settings.conversion.output_dir / f"{sanitize_title(title)}.epub"

    def _write_book(
        self,
        documents: Sequence[NormalizedDocument],
        target: Path,
        *,
        title: str,
        author: str,
        preference: FormatPreference,
    ) -> tuple[Path, str]:
        with tempfile.TemporaryDirectory(prefix="kindle-job-") as workdir:
            epub_path = Path(workdir) / f"{sanitize_title(title)}.epub"
            self._assembler.assemble(documents, epub_path, title=title, author=author)
            return self._deliver(epub_path, target, preference)

    def _deliver(
        self, epub_path: Path, target: Path, preference: FormatPreference
    ) -> tuple[Path, str]:
        """Transcode when wanted and copy the produced file to its destination."""
        produced_path, produced = epub_path, "epub"
        if preference is not FormatPreference.EPUB:
            produced_path, produced = self._try_azw3(epub_path, preference)
        final_path = adjust_output_path(target, produced)
        final_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(produced_path, final_path)
        LOGGER.info("Ebook created: %s (%s)", final_path, produced.upper())
        return final_path, produced

    def _try_azw3(self, epub_path: Path, preference: FormatPreference) -> tuple[Path, str]:
        if not self._transcoder.is_available():
            LOGGER.info("Calibre not found, producing EPUB (%s requested)", preference.value)
            return epub_path, "epub"
        try:
            azw3_path = self._transcoder.convert(epub_path, epub_path.with_suffix(".azw3"))
        except TranscoderError as exc:
            LOGGER.warning("AZW3 conversion failed, falling back to EPUB: %s", exc)
            return epub_path, "epub"
        return azw3_path, "azw3"


def _toc_entry(number: int, href: str, title: str, kind: str, source: str, date: str) -> str:
    return (
        "<li>"
        f'<a href="{href}" id="toc-item-{number}" class="toc-link">'
        f"{html.escape(title)}</a>"
        f'<div class="toc-type">{html.escape(kind)}</div>'
        f'<div class="toc-source">{html.escape(source)}</div>'
        f'<div class="toc-date">{html.escape(date)}</div>'
        "</li>"
    )


def _toc_document(title: str, entries: Sequence[str]) -> NormalizedDocument:
    body = (
        f"<h1>{html.escape(title)}</h1>"
        f'<p class="date">Generated on {datetime.now():%Y-%m-%d %H:%M}</p>'
        "<h2>Table of Contents</h2>"
        f'<div class="toc enhanced-toc"><ol>{"".join(entries)}</ol></div>'
    )
    return NormalizedDocument(
        title="Table of Contents",
        body_html=body,
        css="",
        is_table_of_contents=True,
    )


def build_table_of_contents(
    newsletters: Sequence[PreparedNewsletter], title: str
) -> NormalizedDocument:
    """Build the opening chapter of a combined book."""
    entries = []
    for number, item in enumerate(newsletters, start=1):
        document = item.document
        source = (
            item.classification.display_name
            if item.classification.type != "generic"
            else document.sender or "Unknown Source"
        )
        entries.append(
            _toc_entry(
                number,
                f"{chapter_file_name(number + 1)}#newsletter-{number}",
                document.title,
                item.newsletter_type.capitalize(),
                source,
                document.date,
            )
        )
    return _toc_document(title, entries)


def build_pdf_table_of_contents(titles: Sequence[str], title: str) -> NormalizedDocument:
    """Opening chapter of a book combined from converted PDFs."""
    today = f"{datetime.now():%Y-%m-%d}"
    entries = [
        _toc_entry(
            number,
            f"{chapter_file_name(number + 1)}#pdf-{number}",
            name,
            "PDF",
            PDF_SOURCE,
            today,
        )
        for number, name in enumerate(titles, start=1)
    ]
    return _toc_document(title, entries)


__all__ = [
    "NewsletterConverter",
    "PreparedNewsletter",
    "build_pdf_table_of_contents",
    "build_table_of_contents",
]
