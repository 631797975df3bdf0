"""Stage 2: fetch full detail for every list entry."""
import logging
from typing import Optional, Sequence

from ..batch import ProgressSink, run_batches
from ..control import ControlContext
from ..domain import DetailFetchResult, ListEntry
from .client import FanclubClient


class DetailFetcher:
    """Resolves list entries to detail records in chunks of concurrent requests."""

    STAGE = "getPostDetails"

    def __init__(
        self,
        client: FanclubClient,
        control: ControlContext,
        batch_size: int = 5,
        yield_delay: float = 0.05,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.control = control
        self.batch_size = batch_size
        self.yield_delay = yield_delay
        self.logger = logger or logging.getLogger("fcexport")

    async def fetch(
        self,
        entries: Sequence[ListEntry],
        on_progress: Optional[ProgressSink] = None
    ) -> DetailFetchResult:
        """
        Fetch details for all entries.

        Args:
            entries: Entries from the list stage
            on_progress: Optional progress sink

        Returns:
            Accepted records (in entry order) and skipped results

        Raises:
            Cancelled: If the run is cancelled between chunks
        """
        self.logger.info(f"[Step 2] Starting batch processing for {len(entries)} items...")

        outcomes = await run_batches(
            entries,
            self.client.fetch_detail,
            self.control,
            self.STAGE,
            chunk_size=self.batch_size,
            on_progress=on_progress,
            yield_delay=self.yield_delay,
            logger=self.logger
        )

        result = DetailFetchResult()
        for outcome in outcomes:
            if outcome.ok:
                result.records.append(outcome.value)
            else:
                result.skipped.append(outcome)

        self.logger.info(
            f"[Step 2] Completed. Successfully fetched "
            f"{len(result.records)}/{len(entries)} posts."
        )
        if result.skipped:
            self.logger.info(f"[Step 2] Skipped: {result.skip_counts()}")

        return result
