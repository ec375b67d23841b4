"""Helpers for book titles, authors and output file names."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

_INVALID_FILENAME_CHARS = re.compile(r"[<>:\"/\\|?*]")
_WHITESPACE = re.compile(r"\s+")
_DISPLAY_NAME = re.compile(r"^([^<]+)<")
_ANGLE_ADDRESS = re.compile(r"<([^>]+)>")
_NAME_SEPARATORS = re.compile(r"[._-]")

COLLECTION_KEYWORDS = (
    ("stratechery", re.compile("stratechery", re.IGNORECASE)),
    ("axios", re.compile("axios", re.IGNORECASE)),
    ("bulletin", re.compile("bulletin", re.IGNORECASE)),
    ("substack", re.compile("substack", re.IGNORECASE)),
)


def sanitize_title(title: str | None) -> str:
    """Turn a title into a file-system safe stem."""
    if not title or not title.strip():
        return "untitled"
    cleaned = _INVALID_FILENAME_CHARS.sub("", title.strip())
    return _WHITESPACE.sub("_", cleaned) or "untitled"


def adjust_output_path(output_path: Path, output_format: str) -> Path:
    """Return ``output_path`` with the extension of the produced format."""
    suffix = f".{output_format.lower()}"
    path = Path(output_path)
    if path.suffix.lower() == suffix:
        return path
    return path.with_suffix(suffix)


def extract_author_name(sender: str | None) -> str:
    """Derive a readable author from a ``From`` header value."""
    if not sender:
        return "Unknown"
    display = _DISPLAY_NAME.match(sender)
    if display and display.group(1).strip():
        return display.group(1).strip().strip('"')
    address = _ANGLE_ADDRESS.search(sender)
    if address:
        local_part = address.group(1).split("@", 1)[0]
        words = [word for word in _NAME_SEPARATORS.split(local_part) if word]
        return " ".join(word[:1].upper() + word[1:] for word in words)
    return sender


def generate_collection_title(titles: Sequence[str]) -> str:
    """Name a multi-newsletter book after the publisher its titles mention."""
    if len(titles) == 1:
        return titles[0]
    label = "Newsletters"
    for name, pattern in COLLECTION_KEYWORDS:
        if any(pattern.search(title) for title in titles):
            label = f"{name.capitalize()} Collection"
            break
    return f"{len(titles)} {label}"


__all__ = [
    "adjust_output_path",
    "extract_author_name",
    "generate_collection_title",
    "sanitize_title",
]
