# gpae/models/reservation.py
"""
Reservation model for the GPAE booking API.

A reservation is a one-hour driving lesson starting at ``slot``. It keeps
a denormalized snapshot of the student's contact details, so later edits
to a student profile never rewrite the history of past bookings.
"""

from enum import Enum
import logging
from typing import Any, Dict

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, String, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.constants import SLOT_DURATION
from ..core.timezone_utils import isoformat_utc
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class ReservationStatus(str, Enum):
    """Reservation lifecycle statuses."""

    PENDING = "pending"  # Default - request awaiting confirmation
    CONFIRMED = "confirmed"
    REFUSED = "refused"
    CANCELLED = "cancelled"

    @classmethod
    def active(cls) -> tuple["ReservationStatus", ...]:
        return (cls.PENDING, cls.CONFIRMED)


ACTIVE_STATUSES = tuple(status.value for status in ReservationStatus.active())

# Allowed status changes; refused and cancelled are terminal
STATUS_TRANSITIONS: Dict[str, frozenset] = {
    ReservationStatus.PENDING.value: frozenset(
        {
            ReservationStatus.CONFIRMED.value,
            ReservationStatus.REFUSED.value,
            ReservationStatus.CANCELLED.value,
        }
    ),
    ReservationStatus.CONFIRMED.value: frozenset({ReservationStatus.CANCELLED.value}),
    ReservationStatus.REFUSED.value: frozenset(),
    ReservationStatus.CANCELLED.value: frozenset(),
}

_ACTIVE_SQL = "status IN ('pending', 'confirmed')"


class Reservation(Base):
    """
    One booked hour.

    Invariant: at most one active reservation per (slot, instructor_id),
    enforced by a partial unique index so that concurrent inserts cannot
    both succeed. Unassigned reservations (instructor_id NULL) are not
    covered by the index.
    """

    __tablename__ = "reservations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    slot = Column(UTCDateTime(), nullable=False, index=True)

    # Student snapshot (copied at booking time)
    student_last_name = Column(String(100), nullable=False)
    student_first_name = Column(String(100), nullable=False)
    student_email = Column(String(255), nullable=True, index=True)
    student_phone = Column(String(30), nullable=True)

    instructor_id = Column(
        String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value)

    created_at = Column(UTCDateTime(), server_default=func.now())
    updated_at = Column(UTCDateTime(), onupdate=func.now())

    instructor = relationship("User", foreign_keys=[instructor_id], lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'refused', 'cancelled')",
            name="ck_reservations_status",
        ),
        Index(
            "uq_reservations_active_slot_instructor",
            "slot",
            "instructor_id",
            unique=True,
            postgresql_where=text(_ACTIVE_SQL),
            sqlite_where=text(_ACTIVE_SQL),
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = ReservationStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<Reservation {self.id}: slot={self.slot}, "
            f"instructor={self.instructor_id}, status={self.status}>"
        )

    @property
    def end(self):
        return self.slot + SLOT_DURATION

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_cancellable(self) -> bool:
        """Refused or cancelled reservations are kept as history and cannot be cancelled."""
        return self.is_active

    @property
    def student_full_name(self) -> str:
        return f"{self.student_first_name} {self.student_last_name}".strip()

    def can_transition_to(self, status: str) -> bool:
        return status in STATUS_TRANSITIONS.get(self.status, frozenset())

    def to_calendar_event(self) -> Dict[str, Any]:
        """Event shape consumed by the FullCalendar week view."""
        return {
            "id": self.id,
            "title": self.student_full_name,
            "start": isoformat_utc(self.slot),
            "end": isoformat_utc(self.end),
            "status": self.status,
            "instructor_id": self.instructor_id,
            "extendedProps": {
                "email": self.student_email,
                "tel": self.student_phone,
                "nom": self.student_last_name,
                "prenom": self.student_first_name,
                "instructor_id": self.instructor_id,
            },
        }
