"""Filesystem utilities: name sanitizing, directory creation, atomic writes."""
import re
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

import aiofiles
import aiofiles.os


# Characters not allowed in a single path component on common filesystems
FORBIDDEN_CHARS = re.compile(r'[/\\:*?"<>|]')

# Extension must look like ".jpg", ".jpeg", ".webp" ...
EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,8}$")

DEFAULT_TITLE = "untitled"
DEFAULT_EXTENSION = ".jpg"


def sanitize_title(title: str | None, placeholder: str = DEFAULT_TITLE) -> str:
    """
    Make a post title safe for use as part of a directory name.

    Every forbidden path character is replaced with an underscore so that
    the result stays stable for the same input.

    Args:
        title: Raw post title
        placeholder: Value used for an empty or missing title

    Returns:
        Sanitized title
    """
    if not title:
        title = placeholder
    return FORBIDDEN_CHARS.sub("_", title)


def sanitize_sender_name(name: str) -> str:
    """
    Make a sender display name safe for use as a directory name.

    Args:
        name: Display name or raw sender identifier

    Returns:
        Name without spaces and forbidden path characters
    """
    return FORBIDDEN_CHARS.sub("_", name.replace(" ", ""))


def extension_from_url(url: str, default: str = DEFAULT_EXTENSION) -> str:
    """
    Derive a file extension from the last path segment of a URL.

    Args:
        url: Media URL
        default: Extension used when none can be derived

    Returns:
        Extension including the leading dot (the default for unparsable URLs)
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return default
    segment = PurePosixPath(unquote(path)).name
    suffix = PurePosixPath(segment).suffix
    if suffix and EXTENSION_PATTERN.match(suffix):
        return suffix
    return default


def ensure_directory(path: str | Path) -> Path:
    """
    Create a directory (and parents) if it does not exist.

    Args:
        path: Directory path

    Returns:
        The directory as a Path
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


async def atomic_write_bytes(path: str | Path, data: bytes) -> None:
    """
    Write bytes through a temporary ``.part`` file and rename into place.

    A crash mid-write leaves only the ``.part`` file behind, so the target
    path never holds a truncated file.

    Args:
        path: Target file path
        data: File content
    """
    path = Path(path)
    part_path = Path(str(path) + ".part")

    async with aiofiles.open(part_path, "wb") as f:
        await f.write(data)

    await aiofiles.os.replace(part_path, path)


async def atomic_write_text(path: str | Path, text: str) -> None:
    """
    Write UTF-8 text atomically.

    Args:
        path: Target file path
        text: File content
    """
    await atomic_write_bytes(path, text.encode("utf-8"))
