# gpae/services/reservation_service.py
"""
Reservation Service for the GPAE booking API

Handles the reservation lifecycle:
- Creation through the admission rules
- Status changes (pending, confirmed, refused, cancelled)
- Cancellation (hard delete)
- Listing and the calendar feed
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import (
    InvalidStatusException,
    RepositoryIntegrityException,
    ReservationNotFoundException,
    SlotAlreadyBookedException,
    ValidationException,
)
from ..core.timezone_utils import isoformat_utc
from ..models.reservation import Reservation, ReservationStatus
from ..repositories.factory import RepositoryFactory
from .admission import AdmissionPolicy, AdmissionRuleEngine, Rejected, ReservationCandidate
from .base import BaseService
from .notification_service import ReservationNotice

logger = logging.getLogger(__name__)


def _validate_status(status: Any) -> str:
    try:
        return ReservationStatus(status).value
    except ValueError:
        raise InvalidStatusException(f"Statut invalide: {status!r}", requested=str(status))


class ReservationService(BaseService):
    """
    Service layer for reservation operations.

    Admission rules live in AdmissionRuleEngine; this service turns an
    accepted candidate into a row and owns the transaction.
    """

    def __init__(
        self,
        db: Session,
        policy: Optional[AdmissionPolicy] = None,
        engine: Optional[AdmissionRuleEngine] = None,
    ):
        super().__init__(db)
        self.repository = RepositoryFactory.create_reservation_repository(db)
        self.engine = engine or AdmissionRuleEngine(
            user_repository=RepositoryFactory.create_user_repository(db),
            reservation_repository=self.repository,
            availability_repository=RepositoryFactory.create_availability_repository(db),
            policy=policy,
        )

    @BaseService.measure_operation("create_reservation")
    def create_reservation(self, candidate: ReservationCandidate) -> Tuple[Reservation, Optional[str]]:
        """
        Admit and persist a reservation.

        Returns:
            The stored reservation and the assigned instructor's full name

        Raises:
            DomainException: The rejection mapped by the admission rules, or
                SlotAlreadyBookedException when a concurrent insert won the slot
            ValidationException: Student last or first name missing
        """
        result = self.engine.evaluate(candidate)
        if isinstance(result, Rejected):
            raise result.to_exception()
        if not result.last_name or not result.first_name:
            raise ValidationException("Nom et prénom requis", code="MISSING_FIELDS")

        with self.transaction():
            try:
                reservation = self.repository.insert(
                    **result.to_fields(), status=ReservationStatus.PENDING.value
                )
            except RepositoryIntegrityException:
                self.logger.warning(
                    f"Concurrent booking lost for {isoformat_utc(result.slot)} / {result.instructor_id}"
                )
                raise SlotAlreadyBookedException(
                    details={"slot": isoformat_utc(result.slot), "instructor_id": result.instructor_id}
                )

        instructor_name = result.instructor.full_name if result.instructor is not None else None
        self.logger.info(
            f"Created reservation {reservation.id} at {isoformat_utc(reservation.slot)} "
            f"(instructor={reservation.instructor_id})"
        )
        return reservation, instructor_name

    def get_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.repository.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundException(reservation_id)
        return reservation

    @BaseService.measure_operation("cancel_reservation")
    def cancel_reservation(self, reservation_id: str) -> ReservationNotice:
        """
        Cancel a reservation by deleting it.

        Returns a snapshot for the cancellation email, since the row is gone.

        Raises:
            ReservationNotFoundException: No such reservation (also on a second delete)
            InvalidStatusException: Reservation already refused or cancelled
        """
        reservation = self.get_reservation(reservation_id)
        if not reservation.is_cancellable:
            raise InvalidStatusException(
                "Cette réservation ne peut plus être annulée",
                current=reservation.status,
                requested=ReservationStatus.CANCELLED.value,
            )

        notice = ReservationNotice.from_reservation(reservation)
        with self.transaction():
            self.repository.delete_by_id(reservation.id)

        self.logger.info(f"Cancelled (deleted) reservation {reservation_id}")
        return notice

    @BaseService.measure_operation("update_status")
    def update_status(self, reservation_id: str, status: Any) -> Reservation:
        """
        Move a reservation to another status.

        Allowed: pending -> confirmed/refused/cancelled, confirmed -> cancelled.
        """
        new_status = _validate_status(status)
        reservation = self.get_reservation(reservation_id)
        if not reservation.can_transition_to(new_status):
            raise InvalidStatusException(
                f"Transition interdite: {reservation.status} -> {new_status}",
                current=reservation.status,
                requested=new_status,
            )

        previous = reservation.status
        with self.transaction():
            self.repository.update_status(reservation.id, new_status)

        self.logger.info(f"Reservation {reservation_id}: {previous} -> {new_status}")
        return reservation

    @BaseService.measure_operation("list_reservations")
    def list_reservations(
        self,
        status: Optional[str] = None,
        instructor_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Reservation]:
        if status:
            status = _validate_status(status)
        return self.repository.list_all(status=status, instructor_id=instructor_id, start=start, end=end)

    @BaseService.measure_operation("calendar_events")
    def calendar_events(self) -> List[Dict[str, Any]]:
        """Every reservation as a FullCalendar event."""
        return [reservation.to_calendar_event() for reservation in self.repository.list_all()]
