# gpae/services/availability.py
"""
Instructor availability for the GPAE booking API.

Weekly schedules come in from the admin screens in several shapes
(start/end ranges or discrete hour labels, English or French day names)
and are stored as merged half-open windows. This module converts them and
answers "who is working at this hour".
"""

from datetime import date as date_type, datetime, time
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.constants import SLOT_DURATION
from ..core.exceptions import ValidationException
from ..core.timezone_utils import get_reference_timezone, local_slot_to_utc, to_reference_time
from ..models.availability import AvailabilityWindow
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
FRENCH_WEEKDAY_NAMES = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")

_DAY_LOOKUP: Dict[str, int] = {
    **{name: index for index, name in enumerate(WEEKDAY_NAMES)},
    **{name: index for index, name in enumerate(FRENCH_WEEKDAY_NAMES)},
    **{name[:3]: index for index, name in enumerate(WEEKDAY_NAMES)},
}

# "09:00", "9:00", "9h", "9h30", "09"
TIME_REGEX = re.compile(r"^(\d{1,2})(?:[:hH](\d{2})?)?$")

# (weekday, start, end) with end=None meaning midnight
WindowSpec = Tuple[int, time, Optional[time]]


def parse_weekday(value: Any) -> int:
    """Map a day key (English/French name or 0..6, Monday first) to its index."""
    if isinstance(value, bool):
        raise ValidationException(f"Jour invalide: {value!r}", code="INVALID_DAY")
    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValidationException(f"Jour invalide: {value!r}", code="INVALID_DAY")
    if isinstance(value, str):
        key = value.strip().lower()
        if key.isdigit():
            return parse_weekday(int(key))
        if key in _DAY_LOOKUP:
            return _DAY_LOOKUP[key]
    raise ValidationException(f"Jour invalide: {value!r}", code="INVALID_DAY")


def _parse_minutes(value: Any, *, allow_midnight_end: bool = False) -> int:
    """Parse a wall-clock time into minutes since midnight."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ValidationException(f"Heure invalide: {value!r}", code="INVALID_TIME")
    match = TIME_REGEX.fullmatch(value.strip())
    if not match:
        raise ValidationException(f"Heure invalide: {value!r}", code="INVALID_TIME")
    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    if minutes > 59 or hours > 24 or (hours == 24 and minutes):
        raise ValidationException(f"Heure invalide: {value!r}", code="INVALID_TIME")
    if hours == 24 and not allow_midnight_end:
        raise ValidationException(f"Heure invalide: {value!r}", code="INVALID_TIME")
    return hours * 60 + minutes


def parse_time_of_day(value: Any) -> time:
    minutes = _parse_minutes(value)
    return time(minutes // 60, minutes % 60)


def _minutes_to_time(minutes: int) -> Optional[time]:
    if minutes >= MINUTES_PER_DAY:
        return None
    return time(minutes // 60, minutes % 60)


def _ranges_for_day(entries: Any) -> List[Tuple[int, int]]:
    if entries is None:
        return []
    if isinstance(entries, dict):
        entries = [entries]
    if not isinstance(entries, (list, tuple)):
        raise ValidationException("Format de disponibilité invalide", code="INVALID_SCHEDULE")

    ranges: List[Tuple[int, int]] = []
    for entry in entries:
        if isinstance(entry, dict):
            if "start" not in entry or "end" not in entry:
                raise ValidationException(
                    "Chaque plage doit avoir un début et une fin", code="INVALID_SCHEDULE"
                )
            start = _parse_minutes(entry["start"])
            end = _parse_minutes(entry["end"], allow_midnight_end=True)
            if start >= end:
                raise ValidationException(
                    f"Plage invalide: {entry['start']} - {entry['end']}", code="INVALID_SCHEDULE"
                )
        else:
            # Hour label: one-hour window starting at the label
            start = _parse_minutes(entry)
            end = min(start + 60, MINUTES_PER_DAY)
        ranges.append((start, end))
    return ranges


def merge_ranges(ranges: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Merge overlapping or adjacent [start, end) minute ranges."""
    merged: List[Tuple[int, int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def parse_weekly_schedule(payload: Any) -> List[WindowSpec]:
    """
    Convert a weekly schedule payload into canonical windows.

    Accepted shapes, per day key:
        {"monday": {"start": "09:00", "end": "12:00"}}
        {"lundi": [{"start": "09:00", "end": "12:00"}, {"start": "14:00", "end": "18:00"}]}
        {"0": ["09:00", "10:00"]}   # hour labels, each a [h, h+1) window

    Returns:
        Sorted (weekday, start, end) tuples; end is None for midnight

    Raises:
        ValidationException: Unknown day, malformed time or empty range
    """
    if payload is None:
        return []
    if not isinstance(payload, dict):
        raise ValidationException("Format de disponibilité invalide", code="INVALID_SCHEDULE")

    per_day: Dict[int, List[Tuple[int, int]]] = {}
    for day_key, entries in payload.items():
        weekday = parse_weekday(day_key)
        per_day.setdefault(weekday, []).extend(_ranges_for_day(entries))

    windows: List[WindowSpec] = []
    for weekday in sorted(per_day):
        for start, end in merge_ranges(per_day[weekday]):
            windows.append((weekday, _minutes_to_time(start), _minutes_to_time(end)))
    return windows


def schedule_to_payload(windows: Sequence[AvailabilityWindow]) -> Dict[str, List[Dict[str, str]]]:
    """Render stored windows as {"monday": [{"start": "09:00", "end": "12:00"}], ...}."""
    payload: Dict[str, List[Dict[str, str]]] = {}
    ordered = sorted(windows, key=lambda w: (w.weekday, w.start_time))
    for window in ordered:
        payload.setdefault(WEEKDAY_NAMES[window.weekday], []).append(
            {
                "start": window.start_time.strftime("%H:%M"),
                "end": window.end_time.strftime("%H:%M") if window.end_time else "24:00",
            }
        )
    return payload


def local_hour_bounds(slot: datetime, tz=None) -> Tuple[int, time, Optional[time]]:
    """
    Weekday, local start and local end of the booked hour.

    The hour is one hour of wall-clock time, so on DST days a 01:00 slot
    still ends at 02:00 local. The end is None when the hour runs up to
    local midnight.

    Raises:
        OverflowError: The hour falls outside the datetime range
    """
    wall_start = to_reference_time(slot, tz).replace(tzinfo=None)
    wall_end = wall_start + SLOT_DURATION
    if wall_end.date() != wall_start.date():
        return wall_start.weekday(), wall_start.time(), None
    return wall_start.weekday(), wall_start.time(), wall_end.time()


def schedule_allows(
    windows: Sequence[AvailabilityWindow],
    has_schedule: bool,
    start: time,
    end: Optional[time],
) -> bool:
    """
    True when one window contains [start, end).

    An instructor without any window is unrestricted.
    """
    if not has_schedule:
        return True
    return any(window.covers(start, end) for window in windows)


class InstructorAvailabilityService(BaseService):
    """Answers which instructors can take a lesson at a given time."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)

    def is_working(self, instructor_id: str, weekday: int, start: time, end: Optional[time]) -> bool:
        windows = self.availability_repository.get_windows(instructor_id)
        day_windows = [w for w in windows if w.weekday == weekday]
        return schedule_allows(day_windows, bool(windows), start, end)

    @BaseService.measure_operation("available_instructors")
    def available_instructors(
        self,
        date: Optional[str] = None,
        time: Optional[str] = None,
        jour: Optional[str] = None,
        heure: Optional[str] = None,
    ) -> List[User]:
        """
        Instructors free at a time.

        With ``date`` and ``time`` the hour is a concrete slot: schedule and
        existing active reservations are both checked. With ``jour`` and
        ``heure`` only the weekly schedule is consulted.

        Raises:
            ValidationException: Missing or malformed query
        """
        instructors = self.user_repository.list_instructors()

        if date and time:
            try:
                day = date_type.fromisoformat(date.strip())
            except ValueError:
                raise ValidationException(f"Date invalide: {date!r}", code="INVALID_DATE")
            tz = get_reference_timezone()
            wall_time = parse_time_of_day(time)
            try:
                slot = local_slot_to_utc(day, wall_time, tz)
                weekday, start, end = local_hour_bounds(slot, tz)
            except ValueError as exc:
                raise ValidationException(str(exc), code="INVALID_TIME")
            except OverflowError:
                raise ValidationException(f"Date invalide: {date!r}", code="INVALID_DATE")
            booked = self.reservation_repository.booked_instructor_ids(slot)
            return [
                instructor
                for instructor in instructors
                if instructor.id not in booked and self.is_working(instructor.id, weekday, start, end)
            ]

        if jour is not None and heure:
            weekday = parse_weekday(jour)
            start_minutes = _parse_minutes(heure)
            start = _minutes_to_time(start_minutes)
            end = _minutes_to_time(start_minutes + 60)
            return [
                instructor
                for instructor in instructors
                if self.is_working(instructor.id, weekday, start, end)
            ]

        raise ValidationException(
            "Paramètres requis: date et time, ou jour et heure", code="MISSING_PARAMETERS"
        )


__all__ = [
    "InstructorAvailabilityService",
    "WindowSpec",
    "local_hour_bounds",
    "merge_ranges",
    "parse_time_of_day",
    "parse_weekday",
    "parse_weekly_schedule",
    "schedule_allows",
    "schedule_to_payload",
]
