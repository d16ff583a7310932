"""Shared date and number helpers for provider clients.

Centralises the conversions all platform integrations need: calendar
dates to Unix epochs (seconds for Strava, milliseconds for Google Fit),
and lenient numeric parsing of upstream values.
"""

import math
from datetime import date, datetime, timezone


def date_to_datetime(d: date) -> datetime:
    """Convert a date to a midnight-UTC datetime.

    Args:
        d: A date object.

    Returns:
        A timezone-aware datetime at midnight UTC on that date.
    """
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def epoch_seconds(d: date) -> int:
    """Return the Unix timestamp (seconds) of midnight UTC on ``d``."""
    return int(date_to_datetime(d).timestamp())


def epoch_millis(d: date) -> int:
    """Return the Unix timestamp (milliseconds) of midnight UTC on ``d``."""
    return epoch_seconds(d) * 1000


def parse_number(value) -> float | None:
    """Parse an int, float or numeric string.

    Fitbit time series report values as strings ("2.63"); other
    platforms use JSON numbers.  Booleans are rejected even though they
    are ints in Python, and so are NaN and infinities.

    Args:
        value: The raw upstream value.

    Returns:
        The value as a float, or None if it is missing, not numeric, or
        not finite.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except (ValueError, TypeError, OverflowError):
            return None
    return number if math.isfinite(number) else None
