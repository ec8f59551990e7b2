# gpae/routes/reservations.py
"""
Reservation routes

All business logic delegated to ReservationService; notification emails are
scheduled as background tasks so they never delay or alter the response.

Endpoints:
    GET /slots - Calendar feed (public)
    GET /reservations - List reservations (admin/instructor)
    POST /reservations - Book a slot (public)
    DELETE /reservations/{reservation_id} - Cancel (admin/instructor)
    PUT /reservations/{reservation_id}/status - Change status (admin/instructor)
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from ..api.dependencies.auth import require_staff
from ..api.dependencies.services import get_notification_service, get_reservation_service
from ..core.exceptions import ValidationException
from ..core.timezone_utils import parse_slot
from ..models.reservation import ReservationStatus
from ..models.user import User
from ..schemas.reservation import (
    MessageResponse,
    ReservationCreate,
    ReservationCreatedResponse,
    ReservationResponse,
    ReservationStatusUpdate,
)
from ..services.notification_service import NotificationService, ReservationNotice
from ..services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reservations"])


def _parse_bound(name: str, value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_slot(value)
    except ValueError:
        raise ValidationException(f"{name} invalide: {value!r}", code="INVALID_DATE")


@router.get("/slots")
def list_slots(
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> List[Dict[str, Any]]:
    """Every reservation as a FullCalendar event (start/end in UTC)."""
    return reservation_service.calendar_events()


@router.get("/reservations", response_model=List[ReservationResponse])
def list_reservations(
    status_filter: Optional[str] = Query(None, alias="status"),
    instructor_id: Optional[str] = Query(None),
    start: Optional[str] = Query(None, description="ISO-8601 lower bound (inclusive)"),
    end: Optional[str] = Query(None, description="ISO-8601 upper bound (exclusive)"),
    _: User = Depends(require_staff),
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> List[ReservationResponse]:
    reservations = reservation_service.list_reservations(
        status=status_filter,
        instructor_id=instructor_id,
        start=_parse_bound("start", start),
        end=_parse_bound("end", end),
    )
    return [ReservationResponse.from_reservation(r) for r in reservations]


@router.post(
    "/reservations",
    response_model=ReservationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    payload: ReservationCreate,
    background_tasks: BackgroundTasks,
    reservation_service: ReservationService = Depends(get_reservation_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> ReservationCreatedResponse:
    """
    Book a one-hour slot.

    Rejections: 400 invalid slot or missing names, 404 unknown instructor,
    409 slot taken, student already booked or instructor not working.
    """
    reservation, instructor_name = reservation_service.create_reservation(payload.to_candidate())
    if reservation.student_email:
        background_tasks.add_task(
            notification_service.notify_created,
            ReservationNotice.from_reservation(reservation, instructor_name),
        )
    return ReservationCreatedResponse(
        message="Réservation créée",
        reservation=ReservationResponse.from_reservation(reservation, instructor_name),
    )


@router.delete("/reservations/{reservation_id}", response_model=MessageResponse)
def cancel_reservation(
    reservation_id: str,
    background_tasks: BackgroundTasks,
    _: User = Depends(require_staff),
    reservation_service: ReservationService = Depends(get_reservation_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    notice = reservation_service.cancel_reservation(reservation_id)
    if notice.email:
        background_tasks.add_task(notification_service.notify_cancelled, notice)
    return MessageResponse(message="Réservation annulée")


@router.put("/reservations/{reservation_id}/status", response_model=ReservationResponse)
def update_reservation_status(
    reservation_id: str,
    payload: ReservationStatusUpdate,
    background_tasks: BackgroundTasks,
    _: User = Depends(require_staff),
    reservation_service: ReservationService = Depends(get_reservation_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> ReservationResponse:
    reservation = reservation_service.update_status(reservation_id, payload.status)
    if reservation.status == ReservationStatus.CANCELLED.value and reservation.student_email:
        background_tasks.add_task(
            notification_service.notify_cancelled, ReservationNotice.from_reservation(reservation)
        )
    return ReservationResponse.from_reservation(reservation)
