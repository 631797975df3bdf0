"""Async media downloader."""
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

import aiohttp

from ..fs import atomic_write_bytes


USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class DownloadError(Exception):
    """A single media download failed."""


class MediaDownloader:
    """Downloads one media resource and writes it to one or more paths."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: int = 60,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize downloader.

        Args:
            session: aiohttp session (owned by the caller)
            timeout: Timeout in seconds for one download
            logger: Logger instance
        """
        self.session = session
        self.timeout = timeout
        self.logger = logger or logging.getLogger("fcexport")
        self.requests = 0

    async def fetch_bytes(self, url: str) -> bytes:
        """
        GET a resource into memory.

        Args:
            url: Absolute URL

        Returns:
            Response body

        Raises:
            DownloadError: On non-200 status, timeout or transport error
        """
        self.requests += 1
        try:
            async with self.session.get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status != 200:
                    raise DownloadError(f"HTTP {response.status}")
                return await response.read()
        except asyncio.TimeoutError as e:
            raise DownloadError("Download timed out") from e
        except aiohttp.ClientError as e:
            raise DownloadError(f"{type(e).__name__}: {e}") from e

    async def download(self, url: str, targets: Sequence[Path]) -> int:
        """
        Download once and write the same bytes to every target.

        Args:
            url: Absolute URL
            targets: Output file paths (parent directories must exist)

        Returns:
            Number of bytes downloaded

        Raises:
            DownloadError: If the download fails
        """
        data = await self.fetch_bytes(url)
        for target in targets:
            await atomic_write_bytes(target, data)
        self.logger.debug(f"Downloaded: {url} -> {', '.join(t.name for t in targets)}")
        return len(data)
