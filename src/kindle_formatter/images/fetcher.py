"""Async download of remote newsletter images."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import httpx

from ..core.config import ImageSettings
from ..core.models import ImageRecord
from .mime import to_data_uri

LOGGER = logging.getLogger(__name__)


class RemoteImageFetcher:
    """Fetch pending image records over HTTP and embed them as data URIs.

    Failures are logged and leave the record pending, so the caller keeps
    the original remote URL in the markup.
    """

    def __init__(
        self,
        settings: ImageSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def fetch_all(self, records: Sequence[ImageRecord]) -> int:
        """Fetch every pending record; return how many were embedded."""
        pending = [record for record in records if record.is_pending]
        if not pending:
            return 0

        semaphore = asyncio.Semaphore(self._settings.max_concurrency)
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=httpx.Timeout(self._settings.timeout_seconds),
            headers={"User-Agent": self._settings.user_agent},
            follow_redirects=True,
        ) as client:

            async def _bounded(record: ImageRecord) -> bool:
                async with semaphore:
                    return await self._fetch_one(client, record)

            outcomes = await asyncio.gather(
                *(_bounded(record) for record in pending), return_exceptions=True
            )

        embedded = 0
        for record, outcome in zip(pending, outcomes):
            if isinstance(outcome, BaseException):
                LOGGER.warning("Failed to fetch image %s: %s", record.url, outcome)
            elif outcome:
                embedded += 1
        LOGGER.info("Embedded %d of %d remote image(s)", embedded, len(pending))
        return embedded

    async def _fetch_one(self, client: httpx.AsyncClient, record: ImageRecord) -> bool:
        assert record.url is not None
        try:
            response = await client.get(record.url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.warning("Could not download %s: %s", record.url, exc)
            return False

        content = response.content
        if not content:
            LOGGER.warning("Empty response body for %s", record.url)
            return False
        header_type = response.headers.get("content-type", "")
        mime_type = header_type.split(";")[0].strip().lower()
        if not mime_type.startswith("image/"):
            mime_type = record.mime_type
        record.embed(to_data_uri(content, mime_type), mime_type)
        LOGGER.debug("Embedded %s (%d bytes)", record.url, len(content))
        return True


__all__ = ["RemoteImageFetcher"]
