"""Timestamp formatting and markdown document assembly."""
from datetime import datetime, timezone, tzinfo
from typing import Optional, Sequence

from ..fs import sanitize_title


UNDATED = "undated"


def _localize(ms: int, tz: tzinfo) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).astimezone(tz)


def format_folder_timestamp(ms: Optional[int], tz: tzinfo) -> str:
    """
    Format a release timestamp for directory and file names.

    Args:
        ms: Epoch milliseconds (None when the record has no release date)
        tz: Export timezone

    Returns:
        ``YYYY-MM-DD_HHMMSS``, or ``undated``
    """
    if ms is None:
        return UNDATED
    return _localize(ms, tz).strftime("%Y-%m-%d_%H%M%S")


def format_display_date(ms: Optional[int], tz: tzinfo) -> str:
    """
    Format a release timestamp for the document header (``2024-1-5 9:03:07``).

    Args:
        ms: Epoch milliseconds
        tz: Export timezone

    Returns:
        Formatted date, or an empty string
    """
    if not ms:
        return ""
    d = _localize(ms, tz)
    return f"{d.year}-{d.month}-{d.day} {d.hour}:{d.minute:02d}:{d.second:02d}"


def post_directory_name(release_date: Optional[int], title: str, tz: tzinfo) -> str:
    """Directory name for one post: ``<timestamp>_<sanitized title>``."""
    return f"{format_folder_timestamp(release_date, tz)}_{sanitize_title(title)}"


def media_filename(stamp: str, index: int, extension: str) -> str:
    """Media file name: ``<timestamp>_<NN><ext>`` with a 1-based index."""
    return f"{stamp}_{index:02d}{extension}"


def build_document(
    title: str,
    sender: str,
    date: str,
    body: str,
    filenames: Sequence[str]
) -> str:
    """
    Assemble the markdown document for one post.

    Args:
        title: Post title for the heading
        sender: Sender display name
        date: Formatted release date
        body: Concatenated prose
        filenames: Media file names in URL order

    Returns:
        Document text
    """
    images = "".join(f"![image]({name})\n" for name in filenames)
    return (
        f"# {title}\n\n"
        f"**Sender**: {sender}\n"
        f"**Date**: {date}\n\n"
        f"---\n\n{body}\n\n---\n\n{images}"
    )
