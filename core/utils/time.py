"""
Time Utilities

Delta Exchange mixes timestamp units:
- Candle history: seconds since epoch (e.g., 1700000000)
- Chart axes and expiry sort keys: milliseconds since epoch (e.g., 1740038400000)

The utilities in this module normalize both into timezone-aware UTC datetimes
and render the string forms used in CSV exports and file names.
"""

from datetime import datetime, timezone
from typing import Optional, Union


def to_utc_datetime(timestamp: Union[int, float]) -> datetime:
    """
    Convert a timestamp (seconds or milliseconds) to UTC datetime.

    Detection Logic:
        - If timestamp > 1e12 (1 trillion): Assumed to be milliseconds
        - Otherwise: Assumed to be seconds

    Args:
        timestamp: Unix timestamp in seconds or milliseconds

    Returns:
        datetime: Timezone-aware datetime object in UTC

    Raises:
        ValueError: If timestamp is negative or invalid

    Examples:
        >>> to_utc_datetime(1700000000)
        datetime.datetime(2023, 11, 14, 22, 13, 20, tzinfo=datetime.timezone.utc)

        >>> to_utc_datetime(1740038400000)
        datetime.datetime(2025, 2, 20, 8, 0, tzinfo=datetime.timezone.utc)
    """
    if timestamp < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp}")

    # Seconds are ~1.7e9 today, milliseconds ~1.7e12
    if timestamp > 1e12:
        timestamp = timestamp / 1000.0

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp}. Error: {e}")


def datetime_to_timestamp(dt: datetime, milliseconds: bool = False) -> int:
    """
    Convert a datetime object to Unix timestamp.

    Args:
        dt: Datetime object (naive datetimes are treated as UTC)
        milliseconds: If True, return milliseconds; if False, return seconds

    Examples:
        >>> dt = datetime(2025, 2, 20, 8, 0, 0, tzinfo=timezone.utc)
        >>> datetime_to_timestamp(dt, milliseconds=True)
        1740038400000
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    timestamp = int(dt.timestamp())

    if milliseconds:
        timestamp *= 1000

    return timestamp


def current_utc_timestamp(milliseconds: bool = False) -> int:
    """Get current UTC timestamp in seconds (or milliseconds)."""
    return datetime_to_timestamp(datetime.now(timezone.utc), milliseconds)


def to_iso_utc(timestamp: Union[int, float]) -> str:
    """
    Render a Unix timestamp as ISO-8601 UTC with millisecond precision.

    Examples:
        >>> to_iso_utc(1700000000)
        '2023-11-14T22:13:20.000Z'
    """
    dt = to_utc_datetime(timestamp)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def export_timestamp(now: Optional[datetime] = None) -> str:
    """
    Filename-safe UTC timestamp used to tag exported CSV files.

    Examples:
        >>> export_timestamp(datetime(2025, 2, 20, 8, 30, 5, tzinfo=timezone.utc))
        '2025-02-20T08-30-05'
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
