"""Timestamp normalization for stored datetimes."""

from datetime import datetime, timezone


def to_naive_utc(value: datetime | None) -> datetime:
    """Convert a datetime to the naive UTC form the database stores.

    Aware values are shifted to UTC first; None means now.
    """
    if value is None:
        return datetime.utcnow()
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
