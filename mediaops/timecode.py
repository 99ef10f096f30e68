"""Conversions between ``HH:MM:SS`` timestamps and seconds."""

from __future__ import annotations

from .errors import InvalidArgumentError


def timestamp_to_seconds(timestamp: str) -> float:
    """Convert an ``HH:MM:SS`` timestamp to seconds.

    The seconds field may be fractional ("00:00:01.5"). Anything other than
    three non-negative numeric fields is rejected.

    Examples:
        timestamp_to_seconds("01:02:03")  -> 3723.0
        timestamp_to_seconds("00:00:00")  -> 0.0

    Raises:
        InvalidArgumentError: For malformed timestamps.
    """
    if not isinstance(timestamp, str):
        raise InvalidArgumentError(
            f"Timestamp must be a string, got {type(timestamp).__name__}"
        )

    parts = timestamp.strip().split(':')
    if len(parts) != 3:
        raise InvalidArgumentError(
            f"Invalid timestamp '{timestamp}'. Expected HH:MM:SS"
        )

    try:
        hours, minutes, seconds = (float(p) for p in parts)
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid timestamp '{timestamp}'. Fields must be numeric"
        )

    # float() also accepts "nan" and "inf"
    for value in (hours, minutes, seconds):
        if not 0 <= value < float('inf'):
            raise InvalidArgumentError(
                f"Invalid timestamp '{timestamp}'. Fields must be non-negative numbers"
            )

    return hours * 3600 + minutes * 60 + seconds


def get_time_difference(start: str, end: str) -> float:
    """Seconds elapsed from ``start`` to ``end``. Not checked for sign."""
    return timestamp_to_seconds(end) - timestamp_to_seconds(start)


def timestamp_label(timestamp: str) -> str:
    """Filename-safe form of a timestamp: "00:01:30" -> "00_01_30"."""
    return timestamp.strip().replace(':', '_')
