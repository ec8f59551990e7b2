# gpae/repositories/reservation_repository.py
"""
Reservation Repository for the GPAE booking API

The query/insert interface the admission rules and the reservation
service work against. Conflict lookups only consider active reservations
(pending or confirmed); refused and cancelled rows are history.
"""

from datetime import datetime
import logging
from typing import Any, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.reservation import ACTIVE_STATUSES, Reservation
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ReservationRepository(BaseRepository[Reservation]):
    """Repository for reservation data access."""

    def __init__(self, db: Session):
        super().__init__(db, Reservation)
        self.logger = logging.getLogger(__name__)

    def _active(self):
        return self.db.query(Reservation).filter(Reservation.status.in_(ACTIVE_STATUSES))

    def insert(self, **fields: Any) -> Reservation:
        """Insert a reservation (flush only). Constraint violations raise RepositoryIntegrityException."""
        return self.create(**fields)

    def find_by_slot_and_instructor(
        self, slot: datetime, instructor_id: Optional[str]
    ) -> Optional[Reservation]:
        """
        Active reservation at exactly ``slot`` for the instructor.

        ``instructor_id=None`` matches unassigned reservations.
        """
        query = self._active().filter(Reservation.slot == slot)
        if instructor_id is None:
            query = query.filter(Reservation.instructor_id.is_(None))
        else:
            query = query.filter(Reservation.instructor_id == instructor_id)
        return self._execute_first(query)

    def find_by_slot_and_student(
        self, slot: datetime, email: str, instructor_id: Optional[str] = None
    ) -> Optional[Reservation]:
        """
        Active reservation at ``slot`` held by the student e-mail.

        When ``instructor_id`` is given, only reservations with that
        instructor are considered.
        """
        query = self._active().filter(
            Reservation.slot == slot,
            func.lower(Reservation.student_email) == email.strip().lower(),
        )
        if instructor_id is not None:
            query = query.filter(Reservation.instructor_id == instructor_id)
        return self._execute_first(query)

    def booked_instructor_ids(self, slot: datetime) -> Set[str]:
        try:
            rows = (
                self.db.query(Reservation.instructor_id)
                .filter(
                    Reservation.slot == slot,
                    Reservation.status.in_(ACTIVE_STATUSES),
                    Reservation.instructor_id.isnot(None),
                )
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booked instructors for {slot}: {str(e)}")
            raise RepositoryException(f"Failed to get booked instructors: {str(e)}")

    def delete_by_id(self, reservation_id: str) -> bool:
        return self.delete(reservation_id)

    def list_all(
        self,
        status: Optional[str] = None,
        instructor_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Reservation]:
        """List reservations ordered by slot, optionally filtered."""
        query = self.db.query(Reservation)
        if status:
            query = query.filter(Reservation.status == status)
        if instructor_id:
            query = query.filter(Reservation.instructor_id == instructor_id)
        if start is not None:
            query = query.filter(Reservation.slot >= start)
        if end is not None:
            query = query.filter(Reservation.slot < end)
        return self._execute_query(query.order_by(Reservation.slot, Reservation.id))

    def update_status(self, reservation_id: str, status: str) -> Optional[Reservation]:
        return self.update(reservation_id, status=status)

    def detach_instructor(self, instructor_id: str) -> int:
        """Set instructor_id to NULL on every reservation of the instructor. Returns rows touched."""
        try:
            count = (
                self.db.query(Reservation)
                .filter(Reservation.instructor_id == instructor_id)
                .update({Reservation.instructor_id: None}, synchronize_session="fetch")
            )
            self.db.flush()
            return int(count)
        except SQLAlchemyError as e:
            self.logger.error(f"Error detaching instructor {instructor_id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to detach instructor: {str(e)}")

    def list_active_student_emails(self) -> List[str]:
        try:
            rows = (
                self._active()
                .with_entities(Reservation.student_email)
                .filter(Reservation.student_email.isnot(None))
                .distinct()
                .all()
            )
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reservation emails: {str(e)}")
            raise RepositoryException(f"Failed to list reservation emails: {str(e)}")
