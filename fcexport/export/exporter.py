"""Stage 3: write each detail record to disk as a post directory."""
import logging
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import urljoin
from zoneinfo import ZoneInfo

import aiofiles
import aiofiles.os

from ..batch import ProgressSink, run_batches
from ..control import ControlContext
from ..domain import (
    DetailRecord,
    ExportSummary,
    ItemResult,
    PostExport,
    SkipReason,
    resolve_sender_name,
)
from ..downloader import DownloadError, MediaDownloader
from ..fs import (
    atomic_write_bytes,
    atomic_write_text,
    ensure_directory,
    extension_from_url,
    sanitize_sender_name,
)
from ..fs.utils import DEFAULT_TITLE
from ..parser import markup_to_text
from .document import (
    build_document,
    format_display_date,
    format_folder_timestamp,
    media_filename,
    post_directory_name,
)


class ContentExporter:
    """
    Materializes detail records as ``<root>/<sender>/<timestamp>_<title>/``.

    Each post directory holds ``index.md`` plus numbered media files; every
    media file is mirrored into the sender's ``pictures`` gallery. Files
    already present are not downloaded again, so re-running an export only
    fetches what is missing and rewrites the documents.
    """

    STAGE = "exportPosts"
    GALLERY_DIR = "pictures"
    DOCUMENT_NAME = "index.md"

    def __init__(
        self,
        downloader: MediaDownloader,
        control: ControlContext,
        export_dir: str | Path = "exported",
        media_base_url: str = "https://takanekofc.com/",
        timezone: str = "Asia/Tokyo",
        sender_names: Optional[dict[str, str]] = None,
        batch_size: int = 5,
        yield_delay: float = 0.01,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize exporter.

        Args:
            downloader: Media downloader
            control: Control context for the run
            export_dir: Root export directory
            media_base_url: Origin that ``image*`` field paths resolve against
            timezone: IANA timezone for folder names and document dates
            sender_names: Identifier to display name table (defaults to the built-in one)
            batch_size: Records exported concurrently per chunk
            yield_delay: Pause between chunks
            logger: Logger instance
        """
        self.downloader = downloader
        self.control = control
        self.export_dir = Path(export_dir)
        self.media_base_url = media_base_url if media_base_url.endswith("/") else media_base_url + "/"
        self.tz = ZoneInfo(timezone)
        self.sender_names = sender_names
        self.batch_size = batch_size
        self.yield_delay = yield_delay
        self.logger = logger or logging.getLogger("fcexport")

    async def export(
        self,
        records: Sequence[DetailRecord],
        on_progress: Optional[ProgressSink] = None
    ) -> ExportSummary:
        """
        Export all records.

        Args:
            records: Records from the detail stage
            on_progress: Optional progress sink

        Returns:
            Export summary

        Raises:
            Cancelled: If the run is cancelled between chunks
        """
        ensure_directory(self.export_dir)
        self.logger.info(f"[Step 3] Exporting {len(records)} posts to {self.export_dir}...")

        outcomes = await run_batches(
            records,
            self.export_post,
            self.control,
            self.STAGE,
            chunk_size=self.batch_size,
            on_progress=on_progress,
            yield_delay=self.yield_delay,
            logger=self.logger
        )

        summary = ExportSummary(total=len(records))
        for outcome in outcomes:
            if outcome.ok:
                summary.exported.append(outcome.value)
            else:
                summary.skipped.append(outcome)

        self.logger.info(
            f"[Step 3] Exported {len(summary.exported)}/{len(records)} posts, "
            f"{summary.images_downloaded} images downloaded, "
            f"{summary.images_failed} failed"
        )
        return summary

    def collect_content(self, record: DetailRecord) -> tuple[str, list[str]]:
        """
        Gather prose and the ordered media reference list for a record.

        Body images come first (body fields in key order), then header
        images (image fields in key order). File numbering follows this order.
        References stay as written; each is resolved against the media base
        URL when it is downloaded.

        Args:
            record: Detail record

        Returns:
            Tuple of (body_text, media_references)
        """
        body = ""
        references: list[str] = []

        for body_field in record.body_fields:
            text, images = markup_to_text(body_field.value)
            body += text + "\n\n"
            references.extend(images)

        for image_field in record.image_fields:
            references.append(image_field.value)

        return body, references

    async def export_post(self, record: DetailRecord) -> ItemResult[PostExport]:
        """
        Write one record's directory, media and document.

        Args:
            record: Detail record

        Returns:
            Success with what was written, or skipped when there is no sender
        """
        if not record.sender_id:
            self.logger.info(f"[Step 3] Skipping post without sender: {record.title!r}")
            return ItemResult.skipped(
                SkipReason.MISSING_SENDER, "no sender identifier", record.notification_id
            )

        sender_name = sanitize_sender_name(
            resolve_sender_name(record.sender_id, self.sender_names)
        )
        sender_dir = self.export_dir / sender_name
        gallery_dir = sender_dir / self.GALLERY_DIR
        post_dir = sender_dir / post_directory_name(record.release_date, record.title, self.tz)

        await aiofiles.os.makedirs(gallery_dir, exist_ok=True)
        await aiofiles.os.makedirs(post_dir, exist_ok=True)

        body, references = self.collect_content(record)
        stamp = format_folder_timestamp(record.release_date, self.tz)
        result = PostExport(post_dir=post_dir)

        # Sequential on purpose: bounds open sockets and file handles per post
        for index, reference in enumerate(references, start=1):
            filename = media_filename(stamp, index, extension_from_url(reference))
            await self._save_media(reference, post_dir / filename, gallery_dir / filename, result)
            result.filenames.append(filename)

        document = build_document(
            title=record.title or DEFAULT_TITLE,
            sender=sender_name,
            date=format_display_date(record.release_date, self.tz),
            body=body,
            filenames=result.filenames
        )
        await atomic_write_text(post_dir / self.DOCUMENT_NAME, document)

        return ItemResult.success(result, record.notification_id)

    async def _save_media(
        self,
        reference: str,
        post_path: Path,
        gallery_path: Path,
        result: PostExport
    ) -> None:
        if await aiofiles.os.path.exists(post_path):
            result.reused += 1
            if not await aiofiles.os.path.exists(gallery_path):
                await self._repair_gallery_copy(post_path, gallery_path)
            return

        try:
            url = urljoin(self.media_base_url, reference)
            await self.downloader.download(url, [post_path, gallery_path])
            result.downloaded += 1
        except (DownloadError, OSError, ValueError) as e:
            result.failed += 1
            self.logger.warning(f"[Step 3] Failed to download {reference}: {e}")

    async def _repair_gallery_copy(self, post_path: Path, gallery_path: Path) -> None:
        try:
            async with aiofiles.open(post_path, "rb") as f:
                data = await f.read()
            await atomic_write_bytes(gallery_path, data)
        except OSError as e:
            self.logger.debug(f"Gallery copy skipped for {post_path.name}: {e}")
