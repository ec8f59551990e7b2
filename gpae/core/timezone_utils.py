"""
Timezone utilities for the GPAE booking API.

Slots are stored as absolute UTC instants, but every scheduling rule
(weekday, hour of day, e-mail wording) is evaluated in the school's
reference timezone.
"""

from datetime import date, datetime, time
import re
from typing import Any, Optional

import pytz

from .config import settings

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def get_reference_timezone(name: Optional[str] = None) -> pytz.BaseTzInfo:
    """Return the configured reference timezone (Europe/Paris by default)."""
    return pytz.timezone(name or settings.reference_timezone)


def localize(naive: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """
    Attach ``tz`` to a naive wall-clock datetime.

    Wall times skipped by a DST jump do not exist and raise ValueError.
    Ambiguous wall times (the repeated hour in autumn) resolve to standard time.
    """
    try:
        return tz.localize(naive, is_dst=None)
    except pytz.NonExistentTimeError as exc:
        raise ValueError(f"{naive.isoformat()} does not exist in {tz.zone}") from exc
    except pytz.AmbiguousTimeError:
        return tz.localize(naive, is_dst=False)


def parse_slot(raw: Any, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """
    Parse a slot into an aware UTC datetime.

    Accepts ISO-8601 strings and datetime objects. Strings without an offset
    are wall-clock times in the reference timezone; date-only strings mean
    midnight UTC.

    Raises:
        ValueError: If the value is not a valid instant
    """
    tz = tz or get_reference_timezone()

    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str):
        candidate = raw.strip()
        if not candidate:
            raise ValueError("empty slot")
        if DATE_ONLY_REGEX.fullmatch(candidate):
            return pytz.UTC.localize(datetime.combine(date.fromisoformat(candidate), time()))
        parsed = datetime.fromisoformat(candidate)
    else:
        raise ValueError(f"unsupported slot type: {type(raw).__name__}")

    if parsed.tzinfo is None:
        parsed = localize(parsed, tz)
    return parsed.astimezone(pytz.UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are assumed UTC)."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def to_reference_time(dt: datetime, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Convert an instant to wall-clock time in the reference timezone."""
    return ensure_utc(dt).astimezone(tz or get_reference_timezone())


def local_slot_to_utc(
    day: date, start: time, tz: Optional[pytz.BaseTzInfo] = None
) -> datetime:
    """Build the UTC instant of a local calendar date and wall-clock time."""
    tz = tz or get_reference_timezone()
    return localize(datetime.combine(day, start), tz).astimezone(pytz.UTC)


def format_slot_fr(dt: datetime, tz: Optional[pytz.BaseTzInfo] = None) -> str:
    """Format an instant the way the French e-mails display it (dd/mm/YYYY HH:MM)."""
    return to_reference_time(dt, tz).strftime("%d/%m/%Y %H:%M")


def isoformat_utc(dt: datetime) -> str:
    """ISO-8601 representation in UTC with a trailing Z, as the calendar expects."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%S.000Z")
