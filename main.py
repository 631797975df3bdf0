"""
Fan club message exporter

Usage:
    python main.py                          # Full export using FC_TOKEN from .env
    python main.py run --token <token>      # Full export with an explicit token
    python main.py list                     # Only fetch and print the message list

While an export runs, type pause / resume / cancel / status and press Enter.
Ctrl+C cancels the run; files already written are kept and a later run resumes.
"""
import argparse
import asyncio
import logging
import sys

from fcexport.api import ApiError
from fcexport.app import Orchestrator, RunResult
from fcexport.config import Config
from fcexport.control import CommandListener, ControlContext
from fcexport.domain import ProgressReport
from fcexport.log import setup_logger


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export the fan club message feed to disk")
    parser.add_argument("command", nargs="?", choices=("run", "list"), default="run")
    parser.add_argument("--token", help="Bearer token (defaults to FC_TOKEN)")
    parser.add_argument("--output", help="Export directory (defaults to EXPORT_DIR)")
    parser.add_argument(
        "--no-commands",
        action="store_true",
        help="Do not read pause/resume/cancel commands from stdin"
    )
    return parser.parse_args(argv)


def build_orchestrator(
    token: str,
    export_dir: str,
    control: ControlContext,
    logger: logging.Logger
) -> Orchestrator:
    """Create an orchestrator from the current configuration."""

    def on_progress(report: ProgressReport) -> None:
        logger.info(f"[{report.stage}] {report.percent}% ({report.done}/{report.total})")

    return Orchestrator(
        token=token,
        export_dir=export_dir,
        control=control,
        on_progress=on_progress,
        api_base_url=Config.API_BASE_URL,
        media_base_url=Config.MEDIA_BASE_URL,
        timezone=Config.EXPORT_TIMEZONE,
        detail_batch_size=Config.DETAIL_BATCH_SIZE,
        export_batch_size=Config.EXPORT_BATCH_SIZE,
        list_page_size=Config.LIST_PAGE_SIZE,
        list_timeout=Config.LIST_TIMEOUT,
        detail_timeout=Config.DETAIL_TIMEOUT,
        download_timeout=Config.DOWNLOAD_TIMEOUT,
        detail_yield_delay=Config.DETAIL_YIELD_DELAY,
        export_yield_delay=Config.EXPORT_YIELD_DELAY,
        logger=logger
    )


def display_result(result: RunResult, logger: logging.Logger) -> None:
    logger.info("=" * 60)
    if result.success:
        logger.info("Export complete!")
    elif result.cancelled:
        logger.warning("Export cancelled by user")
    else:
        logger.error(f"Export failed: {result.error}")
    logger.info("=" * 60)

    logger.info(f"Output: {result.path}")
    logger.info(f"  Listed: {result.entries}")
    if result.details is not None:
        logger.info(
            f"  Fetched: {len(result.details.records)} "
            f"(skipped: {result.details.skip_counts() or 0})"
        )
    if result.export is not None:
        logger.info(
            f"  Exported: {len(result.export.exported)}\n"
            f"  Images downloaded: {result.export.images_downloaded}\n"
            f"  Images failed: {result.export.images_failed}"
        )
    logger.info("=" * 60)


async def run_export(token: str, export_dir: str, read_commands: bool, logger) -> int:
    """Run a full export; returns a process exit code."""
    control = ControlContext(poll_interval=Config.PAUSE_POLL_INTERVAL, logger=logger)

    listener = CommandListener(control, logger=logger)
    listener.install_signal_handler()
    if read_commands:
        listener.start()

    async with build_orchestrator(token, export_dir, control, logger) as orchestrator:
        result = await orchestrator.run()

    display_result(result, logger)
    if result.success:
        return 0
    return 130 if result.cancelled else 1


async def run_list(token: str, export_dir: str, logger) -> int:
    """Fetch and print the message list only."""
    control = ControlContext(poll_interval=Config.PAUSE_POLL_INTERVAL, logger=logger)
    async with build_orchestrator(token, export_dir, control, logger) as orchestrator:
        try:
            entries = await orchestrator.fetch_list()
        except ApiError as e:
            logger.error(f"Listing failed: {e}")
            return 1

    for entry in entries:
        print(entry.notification_id or "<missing id>")
    logger.info(f"{len(entries)} messages")
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logger = setup_logger(
        name="fcexport",
        log_dir=Config.LOGS_DIR,
        level=Config.get_log_level(),
        max_bytes=Config.LOG_MAX_BYTES,
        backup_count=Config.LOG_BACKUP_COUNT
    )

    errors = Config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        return 2

    token = args.token or Config.get_token()
    if not token:
        logger.error("No token found. Set FC_TOKEN in .env or pass --token.")
        return 2

    export_dir = args.output or Config.EXPORT_DIR

    logger.info("=" * 60)
    logger.info("Message Exporter Starting")
    logger.info("=" * 60)
    Config.display()

    try:
        if args.command == "list":
            return asyncio.run(run_list(token, export_dir, logger))
        return asyncio.run(run_export(token, export_dir, not args.no_commands, logger))

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1

    finally:
        logger.info("Message Exporter finished")


if __name__ == "__main__":
    sys.exit(main())
