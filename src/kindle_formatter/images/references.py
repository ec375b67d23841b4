"""Lookup tables from textual image references to attachment payloads."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType

from ..core.models import Attachment, Disposition, ImageRecord
from .mime import IMAGE_EXTENSIONS, basename, extension_from_type, to_data_uri

LOGGER = logging.getLogger(__name__)

_EXTENSION_GROUP = "|".join(IMAGE_EXTENSIONS)
_CID_PATTERN = re.compile(r"cid:([^\"'\s>)]+)", re.IGNORECASE)
_FILENAME_SRC_PATTERN = re.compile(
    rf"src=[\"']([^\"']+\.(?:{_EXTENSION_GROUP}))[\"']", re.IGNORECASE
)
_URL_SRC_PATTERN = re.compile(r"src=[\"']([^\"']+)[\"']", re.IGNORECASE)
_UNSAFE_ID_CHARS = re.compile(r"[^\w-]")
MIN_FUZZY_TOKEN = 3


def collect_references(html: str | None) -> set[str]:
    """Return every alias-like token actually referenced by the markup."""
    tokens: set[str] = set()
    if not html:
        return tokens
    for match in _CID_PATTERN.finditer(html):
        token = match.group(1).strip("<>")
        tokens.add(token)
        tokens.add(f"cid:{token}")
    for match in _FILENAME_SRC_PATTERN.finditer(html):
        tokens.add(basename(match.group(1)))
    for match in _URL_SRC_PATTERN.finditer(html):
        tokens.add(match.group(1))
        name = basename(match.group(1))
        if name:
            tokens.add(name)
    return tokens


def safe_id(raw: str) -> str:
    """Make an identifier safe for use inside HTML attributes and file names."""
    return _UNSAFE_ID_CHARS.sub("_", raw)


class ReferenceIndex:
    """Alias table shared by every image of one pipeline run.

    Alias keys are unique across records: the first record to claim a key
    keeps it and later claims are skipped.
    """

    def __init__(self, referenced: Iterable[str] = ()) -> None:
        """Create an empty index; ``referenced`` lists tokens used in markup."""
        self._records: list[ImageRecord] = []
        self._aliases: dict[str, ImageRecord] = {}
        self.referenced: frozenset[str] = frozenset(referenced)

    @classmethod
    def build(
        cls, attachments: Sequence[Attachment], html_body: str | None
    ) -> ReferenceIndex:
        """Index the image attachments of a message."""
        index = cls(collect_references(html_body))
        images_seen = 0
        for position, attachment in enumerate(attachments):
            try:
                mime_type = (attachment.mime_type or "").lower()
                if not mime_type.startswith("image/"):
                    continue
                ordinal = images_seen
                images_seen += 1
                index._add_attachment(attachment, mime_type, ordinal)
            except Exception as exc:  # pylint: disable=broad-except
                LOGGER.warning("Skipping malformed attachment #%d: %s", position, exc)
        LOGGER.debug(
            "Indexed %d image(s) under %d alias key(s)",
            len(index._records),
            len(index._aliases),
        )
        return index

    def _add_attachment(
        self, attachment: Attachment, mime_type: str, ordinal: int
    ) -> None:
        payload = attachment.payload
        if not isinstance(payload, (bytes, bytearray)):
            raise TypeError("attachment payload is not binary")
        content_id = attachment.content_id.strip("<>") if attachment.content_id else ""
        filename = attachment.filename or ""
        record_id = safe_id(content_id or filename or f"image_{ordinal}")

        cid_key = f"cid:{content_id}" if content_id else ""
        keys = [key for key in (content_id, cid_key, filename) if key]
        if not keys:
            keys = [record_id]
        data_uri = to_data_uri(bytes(payload), mime_type)
        owner = next((self._aliases[key] for key in keys[:2] if key in self._aliases), None)
        if owner is not None:
            if content_id or owner.data_uri == data_uri:
                LOGGER.debug("Duplicate image attachment %s skipped", record_id)
                return
            # same file name, different bytes
            record_id = f"image_{ordinal}"
            keys.append(record_id)

        is_inline = (
            attachment.disposition is Disposition.INLINE
            or record_id in self.referenced
            or any(key in self.referenced for key in keys)
        )
        record = ImageRecord(
            id=record_id,
            mime_type=mime_type,
            data_uri=data_uri,
            filename=filename or f"{record_id}.{extension_from_type(mime_type)}",
            is_inline=is_inline,
        )
        self.register(record, keys)
        LOGGER.info("Extracted image %s (%s)", record.filename, record.id)

    def register(self, record: ImageRecord, keys: Iterable[str]) -> list[str]:
        """Add ``record`` and claim every free key; return the claimed keys."""
        claimed: list[str] = []
        for key in keys:
            if not key:
                continue
            owner = self._aliases.get(key)
            if owner is not None and owner is not record:
                LOGGER.debug("Alias %s already owned by %s", key, owner.id)
                continue
            self._aliases[key] = record
            record.alias_keys.add(key)
            claimed.append(key)
        if not any(existing is record for existing in self._records):
            self._records.append(record)
        return claimed

    def lookup(self, key: str) -> ImageRecord | None:
        """Exact alias lookup."""
        return self._aliases.get(key)

    def fuzzy_lookup(self, token: str) -> ImageRecord | None:
        """Best-effort substring match against ``cid:`` aliases.

        Tokens shorter than three characters never match.
        """
        token = token.strip()
        if len(token) < MIN_FUZZY_TOKEN:
            return None
        for key, record in self._aliases.items():
            if not key.startswith("cid:"):
                continue
            if token in key or key in token:
                return record
        return None

    @property
    def records(self) -> tuple[ImageRecord, ...]:
        """Records in registration order."""
        return tuple(self._records)

    @property
    def aliases(self) -> Mapping[str, ImageRecord]:
        """Read-only view of the alias table."""
        return MappingProxyType(self._aliases)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ImageRecord]:
        return iter(self._records)


__all__ = ["ReferenceIndex", "collect_references", "safe_id"]
