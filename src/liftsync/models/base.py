"""Shared helpers for syncable entity models."""

from datetime import date, datetime, timezone
from enum import Enum
from uuid import uuid4


class SyncStatus(str, Enum):
    """Sync state of a locally stored entity."""

    PENDING_SYNC = "pending_sync"
    SYNCED = "synced"


def new_id() -> str:
    """Generate a new opaque entity identifier."""
    return uuid4().hex


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, normalising naive values to UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_datetime(value: datetime | None) -> str | None:
    """Serialize a datetime to ISO-8601 (None stays None)."""
    return value.isoformat() if value else None


def require_datetime(value: str | datetime | None) -> datetime:
    """Parse a timestamp, falling back to now for documents that lack one."""
    return parse_datetime(value) or utc_now()
