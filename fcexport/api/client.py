"""Authenticated client for the fan club notifications API."""
import asyncio
import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from ..domain import DetailRecord, ItemResult, ListEntry, SkipReason


NOTIFICATION_TYPE = "message"


class ApiError(Exception):
    """Fatal failure talking to the API (status, transport or parse)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def bearer(token: str) -> str:
    """
    Format a token as an Authorization header value.

    Args:
        token: Raw token, with or without the ``Bearer`` prefix

    Returns:
        Header value
    """
    token = token.strip()
    return token if token.startswith("Bearer ") else f"Bearer {token}"


class FanclubClient:
    """Thin wrapper around an aiohttp session for the notifications endpoints."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        token: str,
        base_url: str = "https://api.takanekofc.com/auth",
        list_timeout: int = 30,
        detail_timeout: int = 15,
        page_size: int = 1000,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize client.

        Args:
            session: aiohttp session (owned by the caller)
            token: Bearer credential
            base_url: API origin including the auth prefix
            list_timeout: Timeout in seconds for count and list requests
            detail_timeout: Timeout in seconds for one detail request
            page_size: Maximum entries requested per list call
            logger: Logger instance
        """
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.headers = {"Authorization": bearer(token)}
        self.list_timeout = list_timeout
        self.detail_timeout = detail_timeout
        self.page_size = page_size
        self.logger = logger or logging.getLogger("fcexport")

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Any:
        """
        GET a JSON document, raising ApiError on any failure.

        Args:
            path: Path below the base URL
            params: Query parameters

        Returns:
            Decoded JSON value
        """
        url = f"{self.base_url}{path}"
        try:
            async with self.session.get(
                url,
                params=params,
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.list_timeout)
            ) as response:
                if not 200 <= response.status < 300:
                    raise ApiError(f"HTTP {response.status}: {url}", response.status)
                body = await response.read()
        except asyncio.TimeoutError as e:
            raise ApiError(f"Request timed out: {url}") from e
        except aiohttp.ClientError as e:
            raise ApiError(f"{type(e).__name__}: {e}") from e

        try:
            return json.loads(body)
        except ValueError as e:
            raise ApiError(f"Failed to parse JSON response: {url}") from e

    async def fetch_count(self) -> int:
        """
        Get the number of message notifications.

        Returns:
            Total count reported by the API
        """
        data = await self._get_json(
            "/notifications/count",
            {"notificationType": NOTIFICATION_TYPE}
        )
        count = data.get("count") if isinstance(data, dict) else None
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ApiError(f"Unexpected count response: {data!r}")
        return count

    async def fetch_list(self, count: int) -> list[ListEntry]:
        """
        Get the notification list.

        Requests pages of at most ``page_size`` entries; a count within one
        page is fetched with a single call. Stops early on a short page.

        Args:
            count: Number of entries to request

        Returns:
            List entries in API order
        """
        entries: list[ListEntry] = []
        offset = 0

        while offset < count:
            limit = min(self.page_size, count - offset)
            page = await self._get_json(
                "/notifications",
                {
                    "notificationType": NOTIFICATION_TYPE,
                    "offset": str(offset),
                    "limit": str(limit),
                    "orderType": "2",
                    "readType": "all"
                }
            )
            if not isinstance(page, list):
                raise ApiError(f"Unexpected list response type: {type(page).__name__}")

            entries.extend(ListEntry.from_payload(item) for item in page)

            if len(page) < limit:
                break
            offset += limit

        return entries

    async def fetch_all(self) -> list[ListEntry]:
        """
        Count, then list every message notification.

        Returns:
            List entries

        Raises:
            ApiError: On any status, transport or parse failure
        """
        self.logger.info("[Step 1] Fetching total count...")
        count = await self.fetch_count()
        self.logger.info(f"[Step 1] Total message count found: {count}")

        entries = await self.fetch_list(count)
        if len(entries) < count:
            self.logger.warning(
                f"[Step 1] List returned {len(entries)} of {count} entries"
            )
        return entries

    async def fetch_detail(self, entry: ListEntry) -> ItemResult[DetailRecord]:
        """
        Fetch one notification's full payload.

        Never raises for per-item problems; they come back as skipped results.

        Args:
            entry: List entry to resolve

        Returns:
            Success with the record, or a skip reason
        """
        item_id = entry.notification_id
        if not item_id:
            return ItemResult.skipped(SkipReason.MISSING_ID, "entry has no identifier")

        url = f"{self.base_url}/notifications/{quote(item_id, safe='')}"

        try:
            async with self.session.get(
                url,
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.detail_timeout)
            ) as response:
                status = response.status
                body = await response.read()
        except asyncio.TimeoutError:
            self.logger.warning(f"[Step 2] Timed out fetching ID {item_id}")
            return ItemResult.skipped(SkipReason.TIMEOUT, "request timed out", item_id)
        except aiohttp.ClientError as e:
            self.logger.warning(f"[Step 2] Failed to fetch ID {item_id}: {e}")
            return ItemResult.skipped(SkipReason.TRANSPORT, f"{type(e).__name__}: {e}", item_id)

        if status != 200:
            self.logger.warning(f"[Step 2] HTTP {status} for ID {item_id}")
            return ItemResult.skipped(SkipReason.HTTP_STATUS, f"HTTP {status}", item_id)

        try:
            payload = json.loads(body)
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            self.logger.warning(f"[Step 2] Malformed body for ID {item_id}")
            return ItemResult.skipped(SkipReason.MALFORMED, "body is not a JSON object", item_id)

        record = DetailRecord.from_payload(payload, notification_id=item_id)
        if not record.sender_id:
            self.logger.warning(f"[Step 2] No sender for ID {item_id}")
            return ItemResult.skipped(SkipReason.MISSING_SENDER, "no sender identifier", item_id)

        return ItemResult.success(record, item_id)
