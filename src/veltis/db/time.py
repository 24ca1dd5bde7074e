# src/veltis/db/time.py
"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by drivers such as SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
