"""Rewrite image references in newsletter HTML to embedded data."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence

from bs4 import BeautifulSoup, Tag

from ..core.config import ImageSettings
from ..core.interfaces import ImageFetcher
from ..core.models import ImageRecord
from .fetcher import RemoteImageFetcher
from .mime import basename, has_image_extension, is_remote, type_from_extension
from .references import ReferenceIndex, safe_id

LOGGER = logging.getLogger(__name__)

RESOLVED_MARKER = "data-img-id"

TRACKING_DENYLIST = (
    "tracking",
    "beacon",
    "pixel",
    "analytics",
    "utm_",
    "spacer.gif",
    "1x1.gif",
    "transparent.gif",
)

_PIXEL_VALUE = re.compile(r"^\s*(\d+)\s*(?:px)?\s*(?:!important)?\s*$", re.IGNORECASE)
_DIMENSIONS = ("width", "height")


def _is_tiny(value: object) -> bool:
    match = _PIXEL_VALUE.match(str(value)) if value is not None else None
    return match is not None and int(match.group(1)) <= 2


def _has_tiny_dimension(tag: Tag) -> bool:
    if any(_is_tiny(tag.get(name)) for name in _DIMENSIONS):
        return True
    for declaration in str(tag.get("style", "")).split(";"):
        prop, separator, value = declaration.partition(":")
        if separator and prop.strip().lower() in _DIMENSIONS and _is_tiny(value):
            return True
    return False


def classify_tracking_pixel(url: str | None, tag: Tag | str | None = None) -> bool:
    """Return ``True`` when an image looks like a read-receipt beacon.

    ``tag`` is the ``<img>`` element or its markup; only its ``width`` and
    ``height`` attributes and style declarations are inspected, and only
    whole pixel or unitless values count.
    """
    lowered = (url or "").lower()
    if not lowered.startswith("data:") and any(
        token in lowered for token in TRACKING_DENYLIST
    ):
        return True
    if isinstance(tag, str):
        tag = _soup(tag).find("img") if tag else None
    return isinstance(tag, Tag) and _has_tiny_dimension(tag)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def discover_remote(html: str, index: ReferenceIndex) -> list[ImageRecord]:
    """Register remote ``<img>`` sources not yet known to ``index``.

    Returns the newly created records, tracking candidates included.
    """
    created: list[ImageRecord] = []
    taken_ids = {record.id for record in index.records}
    for tag in _soup(html).find_all("img", src=True):
        src = str(tag["src"]).strip()
        if not is_remote(src) or not has_image_extension(src):
            continue
        if index.lookup(src) is not None:
            continue
        name = basename(src)
        known = index.lookup(name)
        if known is not None and known.data_uri is not None:
            # an attachment already carries this file
            continue
        record_id = safe_id(name) or f"remote_{len(taken_ids)}"
        while record_id in taken_ids:
            record_id = f"{record_id}_{len(taken_ids)}"
        taken_ids.add(record_id)

        tracking = classify_tracking_pixel(src, tag)
        record = ImageRecord(
            id=record_id,
            mime_type=type_from_extension(name),
            url=src,
            filename=name,
            is_external=True,
            is_tracking_candidate=tracking,
            is_inline=True,
        )
        keys = [src] if tracking else [src, name]
        index.register(record, keys)
        created.append(record)
        if tracking:
            LOGGER.info("Classified %s as tracking pixel", src)
        else:
            LOGGER.debug("Discovered remote image %s", src)
    return created


def _exact_record(src: str, index: ReferenceIndex) -> ImageRecord | None:
    if src.lower().startswith("cid:"):
        bare = src[4:].strip("<>")
        return index.lookup(src) or index.lookup(f"cid:{bare}") or index.lookup(bare)
    if src.lower().startswith("data:"):
        return None
    record = index.lookup(src)
    if record is None and not is_remote(src):
        record = index.lookup(basename(src))
    return record


def drop_tracking_pixels(html: str, index: ReferenceIndex | None = None) -> str:
    """Remove every ``<img>`` classified as a tracking pixel.

    With ``index``, the record a dropped tag points at is flagged as a
    tracking candidate so no later stage embeds it.
    """
    soup = _soup(html)
    removed = 0
    for tag in soup.find_all("img"):
        src = str(tag.get("src", "")).strip()
        if not classify_tracking_pixel(src, tag):
            continue
        record = _exact_record(src, index) if index is not None and src else None
        if record is not None and not record.is_tracking_candidate:
            record.is_tracking_candidate = True
            LOGGER.info("Image %s flagged as tracking pixel", record.id)
        LOGGER.info("Dropping tracking pixel %s", src[:80])
        tag.decompose()
        removed += 1
    return str(soup) if removed else html


def _lookup_cid(token: str, index: ReferenceIndex) -> ImageRecord | None:
    bare = token[4:] if token.lower().startswith("cid:") else token
    bare = bare.strip("<>")
    for key in (token, f"cid:{bare}", bare):
        record = index.lookup(key)
        if record is not None:
            return record
    record = index.fuzzy_lookup(bare)
    if record is not None:
        LOGGER.debug("Fuzzy matched %s to %s", token, record.id)
    return record


def _apply(tag: Tag, record: ImageRecord) -> None:
    tag["src"] = record.src or tag["src"]
    tag[RESOLVED_MARKER] = record.id


def resolve_inline(html: str, index: ReferenceIndex) -> str:
    """Replace ``cid:`` references with the matching record's data URI.

    Unresolvable references are left untouched.
    """
    soup = _soup(html)
    changed = False
    for tag in soup.find_all(src=re.compile(r"^\s*cid:", re.IGNORECASE)):
        token = str(tag["src"]).strip()
        record = _lookup_cid(token, index)
        if record is None or record.data_uri is None:
            LOGGER.warning("Unresolved inline image reference %s", token)
            continue
        _apply(tag, record)
        changed = True
        LOGGER.debug("Resolved %s to image %s", token, record.id)
    return str(soup) if changed else html


def resolve_by_filename_or_url(html: str, index: ReferenceIndex) -> str:
    """Resolve remaining image sources by exact URL, then by basename."""
    soup = _soup(html)
    changed = False
    for tag in soup.find_all("img", src=True):
        src = str(tag["src"]).strip()
        lowered = src.lower()
        if lowered.startswith(("cid:", "data:")) or tag.has_attr(RESOLVED_MARKER):
            continue
        if not has_image_extension(src):
            continue
        record = index.lookup(src) or index.lookup(basename(src))
        if record is None or record.is_tracking_candidate:
            continue
        if record.data_uri is None:
            LOGGER.debug("Image %s still pending; keeping remote URL", src)
            continue
        _apply(tag, record)
        changed = True
        LOGGER.debug("Resolved %s to image %s", src, record.id)
    return str(soup) if changed else html


class ImageResolver:
    """Drive discovery, fetching and rewriting of every image in a message."""

    def __init__(
        self,
        settings: ImageSettings | None = None,
        fetcher: ImageFetcher | None = None,
    ) -> None:
        self._settings = settings or ImageSettings()
        self._fetcher = fetcher or RemoteImageFetcher(self._settings)
        self._background: set[asyncio.Task[int]] = set()

    async def schedule_remote_fetch(self, records: Sequence[ImageRecord]) -> int:
        """Fetch external records that are still pending and not tracking pixels.

        In ``blocking`` mode the group is awaited, bounded by the overall
        timeout, and the number of embedded records is returned. In
        ``background`` mode a task is started and ``0`` is returned.
        """
        wanted = [
            record
            for record in records
            if record.is_external
            and record.is_pending
            and not record.is_tracking_candidate
        ]
        if not wanted or not self._settings.fetch_remote:
            return 0

        if self._settings.fetch_mode == "background":
            task = asyncio.create_task(self._fetcher.fetch_all(wanted))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            LOGGER.info("Fetching %d remote image(s) in background", len(wanted))
            return 0

        try:
            return await asyncio.wait_for(
                self._fetcher.fetch_all(wanted),
                timeout=self._settings.overall_timeout_seconds,
            )
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Remote image fetch exceeded %.0fs; keeping remote URLs",
                self._settings.overall_timeout_seconds,
            )
            return sum(1 for record in wanted if not record.is_pending)

    async def drain(self) -> None:
        """Wait for background fetches started by this resolver."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def resolve(self, html: str | None, index: ReferenceIndex) -> str:
        """Return ``html`` with every image reference resolved or dropped."""
        if not html:
            return html or ""
        discovered = discover_remote(html, index)
        await self.schedule_remote_fetch(discovered)
        rewritten = drop_tracking_pixels(html, index)
        rewritten = resolve_inline(rewritten, index)
        return resolve_by_filename_or_url(rewritten, index)


__all__ = [
    "RESOLVED_MARKER",
    "ImageResolver",
    "classify_tracking_pixel",
    "discover_remote",
    "drop_tracking_pixels",
    "resolve_by_filename_or_url",
    "resolve_inline",
]
