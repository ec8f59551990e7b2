# gpae/services/admission.py
"""
Reservation admission rules for the GPAE booking API

Decides whether a reservation request may be persisted:
- Slot format (ISO-8601 instant on a whole local hour)
- Instructor resolution or automatic selection
- Weekly availability of the instructor
- Instructor and student double-booking

The engine only reads. Persisting an accepted candidate is the job of
ReservationService, and the partial unique index on reservations remains
the final guarantee against concurrent inserts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
from typing import Any, Dict, Optional, Union

import pytz

from ..core.config import Settings, settings as default_settings
from ..core.enums import StudentBookingScope
from ..core.exceptions import (
    DomainException,
    DuplicateStudentBookingException,
    InstructorNotFoundException,
    InvalidSlotException,
    NoInstructorAvailableException,
    OutsideAvailabilityException,
    SlotAlreadyBookedException,
)
from ..core.timezone_utils import get_reference_timezone, isoformat_utc, parse_slot, to_reference_time
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.reservation_repository import ReservationRepository
from ..repositories.user_repository import UserRepository
from .availability import local_hour_bounds, schedule_allows

logger = logging.getLogger(__name__)


class RejectionReason(str, Enum):
    INVALID_SLOT = "INVALID_SLOT"
    INSTRUCTOR_NOT_FOUND = "INSTRUCTOR_NOT_FOUND"
    NO_INSTRUCTOR_AVAILABLE = "NO_INSTRUCTOR_AVAILABLE"
    OUTSIDE_AVAILABILITY = "OUTSIDE_AVAILABILITY"
    SLOT_ALREADY_BOOKED = "SLOT_ALREADY_BOOKED"
    DUPLICATE_STUDENT_BOOKING = "DUPLICATE_STUDENT_BOOKING"


@dataclass(frozen=True)
class ReservationCandidate:
    """A reservation request as received, before any validation."""

    slot: Any
    last_name: str
    first_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    instructor_id: Optional[str] = None


@dataclass(frozen=True)
class Accepted:
    """A candidate that passed every rule, normalized for persistence."""

    slot: datetime
    instructor: Optional[User]
    last_name: str
    first_name: str
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def instructor_id(self) -> Optional[str]:
        return self.instructor.id if self.instructor is not None else None

    def to_fields(self) -> Dict[str, Any]:
        return {
            "slot": self.slot,
            "instructor_id": self.instructor_id,
            "student_last_name": self.last_name,
            "student_first_name": self.first_name,
            "student_email": self.email,
            "student_phone": self.phone,
        }


@dataclass(frozen=True)
class Rejected:
    """A candidate refused by one rule."""

    reason: RejectionReason
    details: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None

    def to_exception(self) -> DomainException:
        details = self.details
        if self.reason is RejectionReason.INVALID_SLOT:
            return InvalidSlotException(details.get("slot"), reason=self.message)
        if self.reason is RejectionReason.INSTRUCTOR_NOT_FOUND:
            return InstructorNotFoundException(details.get("instructor_id"))
        if self.reason is RejectionReason.NO_INSTRUCTOR_AVAILABLE:
            return NoInstructorAvailableException(details=details)
        if self.reason is RejectionReason.OUTSIDE_AVAILABILITY:
            return OutsideAvailabilityException(
                details.get("instructor_id"), details.get("weekday"), details.get("local_time")
            )
        if self.reason is RejectionReason.SLOT_ALREADY_BOOKED:
            return SlotAlreadyBookedException(details=details)
        return DuplicateStudentBookingException(details.get("email"), details=details)


AdmissionResult = Union[Accepted, Rejected]


@dataclass(frozen=True)
class AdmissionPolicy:
    """Tunable parts of the admission rules."""

    timezone: str = "Europe/Paris"
    student_scope: StudentBookingScope = StudentBookingScope.ANY
    auto_assign: bool = True

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "AdmissionPolicy":
        config = config or default_settings
        return cls(
            timezone=config.reference_timezone,
            student_scope=StudentBookingScope(config.student_booking_scope),
            auto_assign=config.auto_assign_instructor,
        )

    @property
    def tz(self) -> pytz.BaseTzInfo:
        return get_reference_timezone(self.timezone)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class AdmissionRuleEngine:
    """
    Validation pipeline run before a reservation is inserted.

    Rules run in a fixed order and the first failure wins.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        reservation_repository: ReservationRepository,
        availability_repository: AvailabilityRepository,
        policy: Optional[AdmissionPolicy] = None,
    ):
        self.user_repository = user_repository
        self.reservation_repository = reservation_repository
        self.availability_repository = availability_repository
        self.policy = policy or AdmissionPolicy.from_settings()
        self.logger = logging.getLogger(__name__)

    def evaluate(self, candidate: ReservationCandidate) -> AdmissionResult:
        result = self._evaluate(candidate)
        if isinstance(result, Rejected):
            prometheus_metrics.record_admission_rejection(result.reason.value)
            self.logger.info(
                f"Reservation rejected ({result.reason.value}) for slot {candidate.slot!r}: {result.details}"
            )
        return result

    def _evaluate(self, candidate: ReservationCandidate) -> AdmissionResult:
        tz = self.policy.tz

        slot_or_rejection = self._check_slot(candidate.slot, tz)
        if isinstance(slot_or_rejection, Rejected):
            return slot_or_rejection
        slot = slot_or_rejection

        weekday, start, end = local_hour_bounds(slot, tz)
        instructor_id = _clean(candidate.instructor_id)
        instructor: Optional[User] = None

        if instructor_id:
            instructor = self.user_repository.get_instructor(instructor_id)
            if instructor is None:
                return Rejected(
                    RejectionReason.INSTRUCTOR_NOT_FOUND, {"instructor_id": instructor_id}
                )
            if not self._is_working(instructor.id, weekday, start, end):
                return Rejected(
                    RejectionReason.OUTSIDE_AVAILABILITY,
                    {
                        "instructor_id": instructor.id,
                        "weekday": weekday,
                        "local_time": start.strftime("%H:%M"),
                    },
                )
            if self.reservation_repository.find_by_slot_and_instructor(slot, instructor.id):
                return Rejected(
                    RejectionReason.SLOT_ALREADY_BOOKED,
                    {"slot": isoformat_utc(slot), "instructor_id": instructor.id},
                )
        elif self.policy.auto_assign:
            instructor = self._select_instructor(slot, weekday, start, end)
            if instructor is None:
                return Rejected(
                    RejectionReason.NO_INSTRUCTOR_AVAILABLE, {"slot": isoformat_utc(slot)}
                )
        elif self.reservation_repository.find_by_slot_and_instructor(slot, None):
            return Rejected(RejectionReason.SLOT_ALREADY_BOOKED, {"slot": isoformat_utc(slot)})

        email = _clean(candidate.email)
        if email:
            email = email.lower()
            scope_instructor = (
                instructor.id
                if instructor is not None and self.policy.student_scope is StudentBookingScope.INSTRUCTOR
                else None
            )
            if self.reservation_repository.find_by_slot_and_student(slot, email, scope_instructor):
                return Rejected(
                    RejectionReason.DUPLICATE_STUDENT_BOOKING,
                    {"email": email, "slot": isoformat_utc(slot)},
                )

        return Accepted(
            slot=slot,
            instructor=instructor,
            last_name=(candidate.last_name or "").strip(),
            first_name=(candidate.first_name or "").strip(),
            email=email,
            phone=_clean(candidate.phone),
        )

    def _check_slot(self, raw: Any, tz: pytz.BaseTzInfo) -> Union[datetime, Rejected]:
        try:
            slot = parse_slot(raw, tz)
            local = to_reference_time(slot, tz)
            # The booked hour must also be representable (year 9999 overflows)
            local_hour_bounds(slot, tz)
        except (ValueError, OverflowError):
            return Rejected(RejectionReason.INVALID_SLOT, {"slot": raw})

        if local.minute or local.second or local.microsecond:
            return Rejected(
                RejectionReason.INVALID_SLOT,
                {"slot": raw},
                message="Le créneau doit commencer à l'heure pile",
            )
        return slot

    def _is_working(self, instructor_id: str, weekday: int, start, end) -> bool:
        windows = self.availability_repository.get_windows(instructor_id)
        day_windows = [w for w in windows if w.weekday == weekday]
        return schedule_allows(day_windows, bool(windows), start, end)

    def _select_instructor(self, slot: datetime, weekday: int, start, end) -> Optional[User]:
        """First instructor by id who works this hour and is not booked."""
        booked = self.reservation_repository.booked_instructor_ids(slot)
        for instructor in self.user_repository.list_instructors():
            if instructor.id in booked:
                continue
            if self._is_working(instructor.id, weekday, start, end):
                self.logger.debug(f"Auto-assigned instructor {instructor.id} to {isoformat_utc(slot)}")
                return instructor
        return None
