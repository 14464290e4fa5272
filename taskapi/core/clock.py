"""Time helpers shared by the store and the worker."""

from collections.abc import Callable
from datetime import UTC, datetime


Clock = Callable[[], datetime]

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as a fixed-width UTC string.

    Stored timestamps are compared as strings, so every value must have the
    same width and zone. Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(_TIMESTAMP_FORMAT)

