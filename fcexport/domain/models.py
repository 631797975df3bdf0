"""Domain models for the message exporter."""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Generic, Optional, TypeVar


T = TypeVar("T")

# Payload keys used by the notifications API
ID_KEY = "notificationReservationId"
SENDER_KEY = "sendingOfficialUserId"
RELEASE_KEY = "releaseDate"
TITLE_KEY = "title"
BODY_PREFIX = "body"
IMAGE_PREFIX = "image"


class SkipReason(str, Enum):
    """Why an item produced no output."""
    MISSING_ID = "missing_id"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    MALFORMED = "malformed"
    MISSING_SENDER = "missing_sender"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class ItemResult(Generic[T]):
    """Outcome of processing one item: a value or a skip reason."""
    value: Optional[T] = None
    reason: Optional[SkipReason] = None
    detail: str = ""
    item_id: Optional[str] = None

    @classmethod
    def success(cls, value: T, item_id: Optional[str] = None) -> "ItemResult[T]":
        return cls(value=value, item_id=item_id)

    @classmethod
    def skipped(
        cls,
        reason: SkipReason,
        detail: str = "",
        item_id: Optional[str] = None
    ) -> "ItemResult[T]":
        return cls(reason=reason, detail=detail, item_id=item_id)

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass(frozen=True)
class ListEntry:
    """Minimal reference to a feed item, used only to request its detail."""
    notification_id: Optional[str]
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "ListEntry":
        """
        Build an entry from one element of the list response.

        Args:
            payload: Decoded JSON element

        Returns:
            ListEntry (identifier is None when absent)
        """
        if not isinstance(payload, dict):
            return cls(notification_id=None)
        raw_id = payload.get(ID_KEY)
        notification_id = str(raw_id) if raw_id not in (None, "") else None
        return cls(notification_id=notification_id, raw=payload)


@dataclass(frozen=True)
class RichField:
    """One ordered ``body*`` or ``image*`` field of a detail payload."""
    key: str
    value: str


def _ordered_fields(payload: dict, prefix: str) -> tuple[RichField, ...]:
    # Ascending key order; empty or non-string values carry no content
    return tuple(
        RichField(key, payload[key])
        for key in sorted(payload)
        if key.startswith(prefix) and isinstance(payload[key], str) and payload[key]
    )


# Dates must stay representable after any UTC offset is applied
EARLIEST_RELEASE = datetime.min.replace(tzinfo=timezone.utc) + timedelta(days=1)
LATEST_RELEASE = datetime.max.replace(tzinfo=timezone.utc) - timedelta(days=1)


def _parse_release(value: Any) -> Optional[int]:
    """Epoch milliseconds, or None when missing, malformed or not a representable date."""
    if isinstance(value, bool) or value in (None, ""):
        return None
    try:
        millis = int(float(value))
        moment = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
    if not EARLIEST_RELEASE <= moment <= LATEST_RELEASE:
        return None
    return millis


@dataclass(frozen=True)
class DetailRecord:
    """Full content payload for one feed item."""
    notification_id: Optional[str]
    sender_id: str
    release_date: Optional[int]  # epoch milliseconds
    title: str
    body_fields: tuple[RichField, ...] = ()
    image_fields: tuple[RichField, ...] = ()

    @classmethod
    def from_payload(
        cls,
        payload: dict,
        notification_id: Optional[str] = None
    ) -> "DetailRecord":
        """
        Build a record from a decoded detail response.

        Body and image fields are discovered once here, by key prefix, and
        kept as explicit ordered tuples.

        Args:
            payload: Decoded JSON object
            notification_id: Identifier the detail was requested with

        Returns:
            DetailRecord
        """
        sender = payload.get(SENDER_KEY)
        title = payload.get(TITLE_KEY)
        return cls(
            notification_id=notification_id,
            sender_id=str(sender) if sender else "",
            release_date=_parse_release(payload.get(RELEASE_KEY)),
            title=title if isinstance(title, str) else "",
            body_fields=_ordered_fields(payload, BODY_PREFIX),
            image_fields=_ordered_fields(payload, IMAGE_PREFIX)
        )


@dataclass(frozen=True)
class ProgressReport:
    """Progress of one stage after a processed batch."""
    stage: str
    percent: int
    done: int
    total: int


@dataclass
class DetailFetchResult:
    """Accepted records plus the reasons other entries were dropped."""
    records: list[DetailRecord] = field(default_factory=list)
    skipped: list[ItemResult] = field(default_factory=list)

    def skip_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for result in self.skipped:
            counts[result.reason.value] = counts.get(result.reason.value, 0) + 1
        return counts


@dataclass
class PostExport:
    """What was written for one exported post."""
    post_dir: Path
    filenames: list[str] = field(default_factory=list)
    downloaded: int = 0
    reused: int = 0
    failed: int = 0


@dataclass
class ExportSummary:
    """Aggregate outcome of the export stage."""
    total: int = 0
    exported: list[PostExport] = field(default_factory=list)
    skipped: list[ItemResult] = field(default_factory=list)

    @property
    def images_downloaded(self) -> int:
        return sum(post.downloaded for post in self.exported)

    @property
    def images_failed(self) -> int:
        return sum(post.failed for post in self.exported)
