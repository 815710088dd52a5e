"""Shared time and date helpers used across the slot engine."""

import re
from datetime import date, datetime, time, tzinfo

MINUTES_PER_DAY = 24 * 60

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_hhmm(value: str) -> time:
    """Parse a strict ``HH:MM`` 24-hour string.

    Examples:
        >>> parse_hhmm("09:30")
        datetime.time(9, 30)
    """
    match = _HHMM_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time (expected HH:MM): {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``; 1440 renders as ``24:00``.

    Examples:
        >>> format_minutes(570)
        '09:30'
        >>> format_minutes(1440)
        '24:00'
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def parse_iso_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date."""
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}")
    return date.fromisoformat(value.strip())


def to_local(moment: datetime, tz: tzinfo) -> datetime:
    """Express an instant in the system timezone.

    Naive datetimes are taken to already be local wall-clock time.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def local_day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of a local calendar day as aware datetimes."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(date.fromordinal(day.toordinal() + 1), time.min, tzinfo=tz)
    return start, end
