"""Calendar-day keys: `YYYY-MM-DD` strings in local time.

Keys are fixed width and zero padded, so string comparison agrees with
chronological order. Arithmetic works on calendar days, never on 24h spans.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from goalstore.config import settings
from goalstore.engine.errors import InvalidDateKey

_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

DAY_SHORT_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def local_tz() -> tzinfo | None:
    """Configured zone, or None for the host's local zone."""
    return ZoneInfo(settings.default_tz) if settings.default_tz else None


def local_date(value: date | datetime) -> date:
    """Calendar date of `value` on the local wall clock.

    Aware datetimes are converted to the local zone first; naive datetimes
    are taken at face value.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(local_tz())
        return value.date()
    return value


def to_key(value: date | datetime) -> str:
    d = local_date(value)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def from_key(key: str) -> date:
    """Parse a key into a date. Raises InvalidDateKey; never rolls over."""
    if not isinstance(key, str):
        raise InvalidDateKey(key)
    m = _KEY_RE.match(key)
    if m is None:
        raise InvalidDateKey(key)
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        raise InvalidDateKey(key) from None


def is_valid_key(key: object) -> bool:
    try:
        from_key(key)  # type: ignore[arg-type]
    except InvalidDateKey:
        return False
    return True


def add_days_key(key: str, n: int) -> str:
    return to_key(from_key(key) + timedelta(days=n))


def days_between(a: str, b: str) -> int:
    """Signed number of days from `a` to `b`."""
    return (from_key(b) - from_key(a)).days


def weekday_index(key: str) -> int:
    """Weekday of a key with Sunday = 0 … Saturday = 6."""
    return (from_key(key).weekday() + 1) % 7


def today_key(now: datetime | None = None) -> str:
    return to_key(now if now is not None else datetime.now(local_tz()))


def last_7_keys(key: str) -> list[str]:
    """The seven keys ending at `key`, oldest first."""
    return [add_days_key(key, -i) for i in range(6, -1, -1)]
