"""Main orchestrator for coordinating the three export stages."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import aiohttp

from ..api import ApiError, DetailFetcher, FanclubClient
from ..batch import ProgressSink
from ..control import Cancelled, ControlContext
from ..domain import (
    DetailFetchResult,
    DetailRecord,
    ExportSummary,
    ListEntry,
    ProgressReport,
)
from ..downloader import MediaDownloader
from ..export import ContentExporter


LIST_STAGE = "getAllPosts"


@dataclass
class RunResult:
    """Terminal outcome of one export run."""
    success: bool
    cancelled: bool = False
    error: Optional[str] = None
    path: Optional[Path] = None
    entries: int = 0
    details: Optional[DetailFetchResult] = None
    export: Optional[ExportSummary] = None


class Orchestrator:
    """
    Runs list retrieval, detail retrieval and export as one run.

    Owns the HTTP session; use as an async context manager or call
    :meth:`open` / :meth:`close`. Each stage is also callable on its own;
    wrap such calls in ``orchestrator.control.running()`` so pause and
    cancel apply to them, since an idle control context ignores both.
    """

    def __init__(
        self,
        token: str,
        export_dir: str | Path = "exported",
        control: Optional[ControlContext] = None,
        on_progress: Optional[ProgressSink] = None,
        api_base_url: str = "https://api.takanekofc.com/auth",
        media_base_url: str = "https://takanekofc.com/",
        timezone: str = "Asia/Tokyo",
        detail_batch_size: int = 5,
        export_batch_size: int = 5,
        list_page_size: int = 1000,
        list_timeout: int = 30,
        detail_timeout: int = 15,
        download_timeout: int = 60,
        detail_yield_delay: float = 0.05,
        export_yield_delay: float = 0.01,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize orchestrator.

        Args:
            token: Bearer credential
            export_dir: Root export directory
            control: Control context (a new one is created if omitted)
            on_progress: Sink receiving progress reports from every stage
            api_base_url: API origin including the auth prefix
            media_base_url: Origin for header image paths
            timezone: IANA timezone for folder names and dates
            detail_batch_size: Concurrent detail requests per chunk
            export_batch_size: Concurrent post exports per chunk
            list_page_size: Maximum entries per list request
            list_timeout: Count/list request timeout in seconds
            detail_timeout: Detail request timeout in seconds
            download_timeout: Media download timeout in seconds
            detail_yield_delay: Pause between detail chunks
            export_yield_delay: Pause between export chunks
            logger: Logger instance
        """
        self.token = token
        self.export_dir = Path(export_dir)
        self.logger = logger or logging.getLogger("fcexport")
        self.control = control or ControlContext(logger=self.logger)
        self.on_progress = on_progress

        self.api_base_url = api_base_url
        self.media_base_url = media_base_url
        self.timezone = timezone
        self.detail_batch_size = detail_batch_size
        self.export_batch_size = export_batch_size
        self.list_page_size = list_page_size
        self.list_timeout = list_timeout
        self.detail_timeout = detail_timeout
        self.download_timeout = download_timeout
        self.detail_yield_delay = detail_yield_delay
        self.export_yield_delay = export_yield_delay

        self.session: Optional[aiohttp.ClientSession] = None

    async def open(self) -> None:
        """Create the HTTP session."""
        if self.session is None:
            self.session = aiohttp.ClientSession()

    async def close(self) -> None:
        """Close the HTTP session."""
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "Orchestrator":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _emit(self, report: ProgressReport) -> None:
        if self.on_progress:
            self.on_progress(report)

    def _client(self) -> FanclubClient:
        if self.session is None:
            raise RuntimeError("Orchestrator is not open")
        return FanclubClient(
            self.session,
            self.token,
            base_url=self.api_base_url,
            list_timeout=self.list_timeout,
            detail_timeout=self.detail_timeout,
            page_size=self.list_page_size,
            logger=self.logger
        )

    async def fetch_list(self) -> list[ListEntry]:
        """
        Stage 1: count and list notifications.

        Raises:
            ApiError: On any request failure
        """
        self.logger.info("--- STEP 1 STARTED: Fetching List ---")
        self._emit(ProgressReport(LIST_STAGE, 0, 0, 0))

        entries = await self._client().fetch_all()

        self._emit(ProgressReport(LIST_STAGE, 100, len(entries), len(entries)))
        self.logger.info(f"--- STEP 1 COMPLETE: Found {len(entries)} items ---")
        return entries

    async def fetch_details(self, entries: Sequence[ListEntry]) -> DetailFetchResult:
        """
        Stage 2: fetch detail for every entry.

        Pause and cancel only take effect inside ``control.running()``.

        Raises:
            Cancelled: If cancelled between chunks
        """
        self.logger.info(f"--- STEP 2 STARTED: Fetching Details for {len(entries)} items ---")
        fetcher = DetailFetcher(
            self._client(),
            self.control,
            batch_size=self.detail_batch_size,
            yield_delay=self.detail_yield_delay,
            logger=self.logger
        )
        result = await fetcher.fetch(entries, on_progress=self.on_progress)
        self.logger.info("--- STEP 2 COMPLETE ---")
        return result

    async def export_posts(self, records: Sequence[DetailRecord]) -> ExportSummary:
        """
        Stage 3: write records to the export directory.

        Pause and cancel only take effect inside ``control.running()``.

        Raises:
            Cancelled: If cancelled between chunks
        """
        if self.session is None:
            raise RuntimeError("Orchestrator is not open")

        self.logger.info(f"--- STEP 3 STARTED: Exporting to {self.export_dir} ---")
        exporter = ContentExporter(
            MediaDownloader(self.session, timeout=self.download_timeout, logger=self.logger),
            self.control,
            export_dir=self.export_dir,
            media_base_url=self.media_base_url,
            timezone=self.timezone,
            batch_size=self.export_batch_size,
            yield_delay=self.export_yield_delay,
            logger=self.logger
        )
        summary = await exporter.export(records, on_progress=self.on_progress)
        self.logger.info("--- STEP 3 COMPLETE ---")
        return summary

    async def run(self) -> RunResult:
        """
        Run all three stages under a fresh control state.

        Never raises; the outcome (including cancellation) is reported in
        the returned :class:`RunResult`. Files written before a failure stay
        on disk and a later run picks up where this one stopped.

        Returns:
            Run result
        """
        result = RunResult(success=False, path=self.export_dir)

        with self.control.running():
            try:
                entries = await self.fetch_list()
                result.entries = len(entries)
                await self.control.checkpoint(LIST_STAGE)

                result.details = await self.fetch_details(entries)
                await self.control.checkpoint(DetailFetcher.STAGE)

                result.export = await self.export_posts(result.details.records)

                result.success = True

            except Cancelled as e:
                result.cancelled = True
                result.error = str(e)
                self.logger.warning(f"Export stopped: {e}")

            except ApiError as e:
                result.error = str(e)
                self.logger.error(f"Export failed: {e}")

            except Exception as e:
                result.error = f"{type(e).__name__}: {e}"
                self.logger.exception(f"Unexpected error: {e}")

        return result
