"""Helpers mapping image file names, URLs and MIME types."""

from __future__ import annotations

import base64
from urllib.parse import urlparse

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "bmp", "svg")

_TYPE_BY_EXTENSION = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
}

_EXTENSION_BY_TYPE = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
}


def type_from_extension(filename: str) -> str:
    """Guess a MIME type from a file name, defaulting to JPEG."""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return _TYPE_BY_EXTENSION.get(extension, "image/jpeg")


def extension_from_type(mime_type: str) -> str:
    """Return the usual file extension for an image MIME type."""
    return _EXTENSION_BY_TYPE.get(mime_type.lower(), "bin")


def basename(reference: str) -> str:
    """Return the last path segment of a URL or path, without query string."""
    path = urlparse(reference).path if "://" in reference else reference
    return path.split("?")[0].rstrip("/").split("/")[-1]


def has_image_extension(reference: str) -> bool:
    """True when the path part of ``reference`` ends in a known image extension."""
    name = basename(reference).lower()
    return any(name.endswith(f".{extension}") for extension in IMAGE_EXTENSIONS)


def is_remote(reference: str) -> bool:
    """True for absolute http(s) URLs."""
    return reference.lower().startswith(("http://", "https://"))


def to_data_uri(payload: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 ``data:`` URI."""
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


__all__ = [
    "IMAGE_EXTENSIONS",
    "basename",
    "extension_from_type",
    "has_image_extension",
    "is_remote",
    "to_data_uri",
    "type_from_extension",
]
