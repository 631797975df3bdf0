"""Domain models and enums."""
from .models import (
    DetailFetchResult,
    DetailRecord,
    ExportSummary,
    ItemResult,
    ListEntry,
    PostExport,
    ProgressReport,
    RichField,
    SkipReason,
)
from .senders import SENDER_NAMES, resolve_sender_name

__all__ = [
    "DetailFetchResult",
    "DetailRecord",
    "ExportSummary",
    "ItemResult",
    "ListEntry",
    "PostExport",
    "ProgressReport",
    "RichField",
    "SkipReason",
    "SENDER_NAMES",
    "resolve_sender_name",
]
