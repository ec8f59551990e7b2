# gpae/repositories/user_repository.py
"""
User Repository for the GPAE booking API

Handles all User data access: lookups by id/email, role filtering and the
instructor listing used by auto-assignment.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup by e-mail."""
        if not email:
            return None
        query = self.db.query(User).filter(func.lower(User.email) == email.strip().lower())
        return self._execute_first(query)

    def get_instructor(self, instructor_id: str) -> Optional[User]:
        """Return the user only if it exists and holds the instructor role."""
        query = self.db.query(User).filter(
            User.id == instructor_id, User.role == RoleName.INSTRUCTOR.value
        )
        return self._execute_first(query)

    def list_users(self, role: Optional[str] = None) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        return self._execute_query(query.order_by(User.last_name, User.first_name, User.id))

    def list_instructors(self) -> List[User]:
        """
        All instructors ordered by id.

        ULIDs sort in creation order, so this is the stable tie-break used
        when a reservation is auto-assigned.
        """
        query = self.db.query(User).filter(User.role == RoleName.INSTRUCTOR.value).order_by(User.id)
        return self._execute_query(query)

    def list_emails_by_role(self, role: str) -> List[str]:
        try:
            rows: Sequence = (
                self.db.query(User.email)
                .filter(User.role == role, User.email.isnot(None))
                .order_by(User.email)
                .all()
            )
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing {role} emails: {str(e)}")
            raise RepositoryException(f"Failed to list emails: {str(e)}")
