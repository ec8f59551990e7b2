# gpae/repositories/availability_repository.py
"""
Availability Repository for the GPAE booking API

Reads and replaces the weekly schedule of instructors.
"""

from datetime import time
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityWindow
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

WindowSpec = Tuple[int, time, Optional[time]]


class AvailabilityRepository(BaseRepository[AvailabilityWindow]):
    """Repository for instructor availability windows."""

    def __init__(self, db: Session):
        super().__init__(db, AvailabilityWindow)
        self.logger = logging.getLogger(__name__)

    def get_windows(self, instructor_id: str) -> List[AvailabilityWindow]:
        query = (
            self.db.query(AvailabilityWindow)
            .filter(AvailabilityWindow.instructor_id == instructor_id)
            .order_by(AvailabilityWindow.weekday, AvailabilityWindow.start_time)
        )
        return self._execute_query(query)

    def replace_schedule(self, instructor_id: str, windows: Iterable[WindowSpec]) -> List[AvailabilityWindow]:
        """
        Replace the whole weekly schedule of an instructor.

        Does not commit.
        """
        try:
            self.db.query(AvailabilityWindow).filter(
                AvailabilityWindow.instructor_id == instructor_id
            ).delete(synchronize_session="fetch")
            created = [
                AvailabilityWindow(
                    instructor_id=instructor_id,
                    weekday=weekday,
                    start_time=start,
                    end_time=end,
                )
                for weekday, start, end in windows
            ]
            self.db.add_all(created)
            self.db.flush()
            return created
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing schedule of {instructor_id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to replace schedule: {str(e)}")
