"""Core domain models used across the conversion pipeline."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Disposition(str, Enum):
    """Content-Disposition of an email part."""

    INLINE = "inline"
    ATTACHMENT = "attachment"
    UNSPECIFIED = "unspecified"


class FormatPreference(str, Enum):
    """Output format requested by the caller."""

    AUTO = "auto"
    EPUB = "epub"
    AZW3 = "azw3"


@dataclass(frozen=True, slots=True)
class Attachment:
    """Binary part of an email message."""

    content_id: str | None
    filename: str | None
    mime_type: str
    payload: bytes
    disposition: Disposition = Disposition.UNSPECIFIED


@dataclass(frozen=True, slots=True)
class ParsedMessage:
    """Immutable result of decoding a raw email."""

    subject: str
    sender: str
    date: str
    html_body: str | None
    text_body: str | None
    attachments: tuple[Attachment, ...] = ()
    error: str | None = None


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class ImageRecord:
    """An image ready for embedding, or still waiting for its remote bytes."""

    id: str
    mime_type: str
    data_uri: str | None = None
    url: str | None = None
    filename: str | None = None
    is_external: bool = False
    is_tracking_candidate: bool = False
    is_inline: bool = False
    alias_keys: set[str] = field(default_factory=set)

    @property
    def is_pending(self) -> bool:
        """True while the record only knows its remote URL."""
        return self.data_uri is None and self.url is not None

    @property
    def src(self) -> str | None:
        """Best value for an ``src`` attribute: inline data, else the URL."""
        return self.data_uri or self.url

    def embed(self, data_uri: str, mime_type: str | None = None) -> None:
        """Move the record from pending URL to inline data."""
        self.data_uri = data_uri
        if mime_type:
            self.mime_type = mime_type


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Publisher detected for a message."""

    type: str = "generic"
    display_name: str = "Newsletter"
    confidence: int = 0


@dataclass(frozen=True, slots=True)
class Template:
    """Publisher-specific CSS and content transform."""

    css_text: str
    transform: Callable[[str], str]


@dataclass(frozen=True, slots=True)
class NormalizedDocument:
    """Kindle-safe document handed to the ebook assembler."""

    title: str
    body_html: str
    css: str
    is_table_of_contents: bool = False
    sender: str = ""
    date: str = ""


@dataclass(slots=True)
class ConversionResult:
    """Outcome of a single conversion job."""

    source: Path
    output_path: Path
    format: str
    requested: FormatPreference
    classification: ClassificationResult | None = None

    @property
    def fell_back(self) -> bool:
        """True when AZW3 was attempted but EPUB was produced instead."""
        return self.requested is not FormatPreference.EPUB and self.format != "azw3"


@dataclass(slots=True)
class BatchReport:
    """Per-item tally for batch conversions."""

    results: list[ConversionResult] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    output_path: Path | None = None
    format: str | None = None

    @property
    def succeeded(self) -> int:
        """Number of inputs converted."""
        return len(self.results)

    @property
    def failed(self) -> int:
        """Number of inputs that could not be converted."""
        return len(self.failures)

    @property
    def total(self) -> int:
        """Number of inputs seen."""
        return self.succeeded + self.failed


__all__ = [
    "Attachment",
    "BatchReport",
    "ClassificationResult",
    "ConversionResult",
    "Disposition",
    "FormatPreference",
    "ImageRecord",
    "NormalizedDocument",
    "ParsedMessage",
    "Template",
]
