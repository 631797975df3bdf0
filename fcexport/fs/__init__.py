"""Filesystem helpers."""
from .utils import (
    atomic_write_bytes,
    atomic_write_text,
    ensure_directory,
    extension_from_url,
    sanitize_sender_name,
    sanitize_title,
)

__all__ = [
    "atomic_write_bytes",
    "atomic_write_text",
    "ensure_directory",
    "extension_from_url",
    "sanitize_sender_name",
    "sanitize_title",
]
