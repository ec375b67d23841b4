"""Protocol interfaces for decoupling the core from external collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from .models import ImageRecord, NormalizedDocument, ParsedMessage


class MessageParser(Protocol):
    """Turns raw email input into a :class:`ParsedMessage`."""

    def parse(self, payload: bytes) -> ParsedMessage:
        """Decode RFC822 bytes."""
        raise NotImplementedError

    def parse_file(self, path: Path) -> ParsedMessage:
        """Read and decode an ``.eml`` file."""
        raise NotImplementedError


class EbookAssembler(Protocol):
    """Opaque sink that wraps normalized documents into a container file."""

    def assemble(
        self,
        documents: Sequence[NormalizedDocument],
        output_path: Path,
        *,
        title: str,
        author: str,
    ) -> Path:
        """Write the container for ``documents`` and return its path."""
        raise NotImplementedError


class Transcoder(Protocol):
    """External ebook format conversion tool."""

    def is_available(self) -> bool:
        """Return ``True`` when the tool can be executed."""
        raise NotImplementedError

    def convert(self, source: Path, target: Path, *extra_args: str) -> Path:
        """Convert ``source`` into ``target``; the suffix selects the format."""
        raise NotImplementedError

    def pdf_to_epub(self, source: Path, target: Path, *, title: str) -> Path:
        """Convert a PDF into a reflowable EPUB."""
        raise NotImplementedError


class ImageFetcher(Protocol):
    """Downloads remote images and embeds them into their records."""

    async def fetch_all(self, records: Sequence[ImageRecord]) -> int:
        """Fetch every pending record; return how many were embedded."""
        raise NotImplementedError


__all__ = ["EbookAssembler", "ImageFetcher", "MessageParser", "Transcoder"]
