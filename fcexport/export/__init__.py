"""Export of detail records to the on-disk layout."""
from .document import (
    build_document,
    format_display_date,
    format_folder_timestamp,
    media_filename,
    post_directory_name,
)
from .exporter import ContentExporter

__all__ = [
    "ContentExporter",
    "build_document",
    "format_display_date",
    "format_folder_timestamp",
    "media_filename",
    "post_directory_name",
]
