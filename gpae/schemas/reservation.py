"""Schemas for reservations and the calendar feed."""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, ConfigDict, Field

from ..core.timezone_utils import isoformat_utc
from ..models.reservation import Reservation
from ..services.admission import ReservationCandidate
from .base import StandardizedModel


class ReservationCreate(StandardizedModel):
    """
    Booking request.

    ``slot`` is left untyped: a malformed value must reach the admission
    rules and be reported as INVALID_SLOT. Any ``status`` sent by the client
    is ignored, new reservations are always pending.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    slot: Any
    last_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("nom", "last_name"))
    first_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("prenom", "first_name"))
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, validation_alias=AliasChoices("tel", "phone"))
    instructor_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("instructor_id", "moniteur_id")
    )

    def to_candidate(self) -> ReservationCandidate:
        return ReservationCandidate(
            slot=self.slot,
            last_name=self.last_name or "",
            first_name=self.first_name or "",
            email=self.email,
            phone=self.phone,
            instructor_id=self.instructor_id,
        )


class ReservationStatusUpdate(StandardizedModel):
    status: str


class ReservationResponse(StandardizedModel):
    id: str
    slot: str
    end: str
    status: str
    instructor_id: Optional[str] = None
    instructor_name: Optional[str] = None
    student_last_name: str
    student_first_name: str
    student_email: Optional[str] = None
    student_phone: Optional[str] = None
    nom: str
    prenom: str
    email: Optional[str] = None
    tel: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_reservation(
        cls, reservation: Reservation, instructor_name: Optional[str] = None
    ) -> "ReservationResponse":
        if instructor_name is None and reservation.instructor is not None:
            instructor_name = reservation.instructor.full_name
        return cls(
            id=reservation.id,
            slot=isoformat_utc(reservation.slot),
            end=isoformat_utc(reservation.end),
            status=reservation.status,
            instructor_id=reservation.instructor_id,
            instructor_name=instructor_name,
            student_last_name=reservation.student_last_name,
            student_first_name=reservation.student_first_name,
            student_email=reservation.student_email,
            student_phone=reservation.student_phone,
            nom=reservation.student_last_name,
            prenom=reservation.student_first_name,
            email=reservation.student_email,
            tel=reservation.student_phone,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


class ReservationCreatedResponse(StandardizedModel):
    message: str
    reservation: ReservationResponse


class MessageResponse(StandardizedModel):
    message: str
