"""Utilities for parsing raw RFC822 newsletters into structured models."""

from __future__ import annotations

import html
import logging
from collections.abc import Iterable
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import formataddr, getaddresses, parsedate_to_datetime
from pathlib import Path

from ..core.errors import InputError
from ..core.models import Attachment, Disposition, ParsedMessage

LOGGER = logging.getLogger(__name__)

_BODY_TYPES = ("text/plain", "text/html")


class EmlParser:
    """Convert raw email payloads into :class:`ParsedMessage` instances."""

    def __init__(self) -> None:
        """Prepare internal parser instance."""
        self._parser = BytesParser(policy=policy.default)

    def parse_file(self, path: Path | str) -> ParsedMessage:
        """Read an ``.eml`` file and parse it.

        Missing or empty files raise :class:`InputError`. Content that cannot
        be decoded yields a stand-in message so the caller still has something
        to convert.
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise InputError(f"File not found: {file_path.name}")
        try:
            payload = file_path.read_bytes()
        except OSError as exc:
            raise InputError(f"Cannot read {file_path.name}: {exc}") from exc
        if not payload:
            raise InputError(f"Empty file: {file_path.name}")
        LOGGER.info("Parsing %s (%d bytes)", file_path.name, len(payload))
        return self.parse(payload)

    def parse(self, payload: bytes) -> ParsedMessage:
        """Parse raw RFC822 bytes into a :class:`ParsedMessage`."""
        try:
            message = self._parser.parsebytes(payload)
            subject = str(message.get("Subject") or "").strip()
            sender = _format_sender(message.get("From"))
            date = _format_date(message.get("Date"))
            text_body, html_body = _extract_bodies(message)
            attachments = tuple(_collect_attachments(message))
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error("Error parsing newsletter: %s", exc, exc_info=True)
            return error_message(str(exc))

        LOGGER.debug(
            "Parsed '%s' from %s with %d attachment(s)",
            subject,
            sender,
            len(attachments),
        )
        return ParsedMessage(
            subject=subject,
            sender=sender,
            date=date,
            html_body=html_body,
            text_body=text_body,
            attachments=attachments,
        )


def error_message(reason: str) -> ParsedMessage:
    """Return the stand-in message used when an email cannot be decoded."""
    escaped = html.escape(reason)
    return ParsedMessage(
        subject="Error parsing newsletter",
        sender="",
        date="",
        html_body=f"<p>There was an error parsing this newsletter: {escaped}</p>",
        text_body=f"Error parsing newsletter: {reason}",
        error=reason,
    )


def _format_sender(header_value: str | None) -> str:
    if not header_value:
        return ""
    for name, address in getaddresses([str(header_value)]):
        if address:
            return formataddr((name, address)) if name else address
    return str(header_value)


def _format_date(header_value: str | None) -> str:
    if not header_value:
        return ""
    try:
        parsed = parsedate_to_datetime(str(header_value))
    except (TypeError, ValueError):
        return str(header_value)
    return f"{parsed:%A, %B} {parsed.day}, {parsed.year}"


def _collapse_chunks(chunks: Iterable[str], separator: str) -> str | None:
    filtered_chunks = [chunk for chunk in chunks if chunk]
    if not filtered_chunks:
        return None
    return separator.join(filtered_chunks)


def _extract_bodies(message: EmailMessage) -> tuple[str | None, str | None]:
    plain_chunks: list[str] = []
    html_chunks: list[str] = []

    for part in message.walk():
        if part.is_multipart():
            continue
        content_type = part.get_content_type()
        if content_type not in _BODY_TYPES:
            continue
        if part.get_content_disposition() == "attachment":
            continue
        try:
            content_obj = part.get_content()
        except LookupError:
            continue
        if not isinstance(content_obj, str):
            continue
        content = content_obj.strip()
        if content_type == "text/plain":
            plain_chunks.append(content)
        else:
            html_chunks.append(content)

    text = _collapse_chunks(plain_chunks, "\n\n")
    html_body = _collapse_chunks(html_chunks, "\n")
    return text, html_body


def _collect_attachments(message: EmailMessage) -> Iterable[Attachment]:
    for part in message.walk():
        if part.is_multipart():
            continue
        disposition = part.get_content_disposition()
        content_type = part.get_content_type()
        if content_type in _BODY_TYPES and disposition != "attachment":
            continue
        payload = part.get_payload(decode=True) or b""
        content_id = part.get("Content-ID")
        yield Attachment(
            content_id=_strip_brackets(content_id),
            filename=part.get_filename(),
            mime_type=content_type,
            payload=payload,
            disposition=_map_disposition(disposition),
        )


def _strip_brackets(value: str | None) -> str | None:
    if not value:
        return None
    stripped = str(value).strip().strip("<>").strip()
    return stripped or None


def _map_disposition(value: str | None) -> Disposition:
    if value == "inline":
        return Disposition.INLINE
    if value == "attachment":
        return Disposition.ATTACHMENT
    return Disposition.UNSPECIFIED


__all__ = ["EmlParser", "error_message"]
