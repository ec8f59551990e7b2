# gpae/services/user_service.py
"""
User Service for the GPAE booking API

Handles login and the admin-only directory operations: listing, creating,
editing and deleting people, and replacing an instructor's weekly
availability.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..auth import DUMMY_HASH_FOR_TIMING_ATTACK, get_password_hash, verify_password
from ..core.enums import RoleName
from ..core.exceptions import (
    DuplicateEmailException,
    RepositoryIntegrityException,
    UnauthorizedException,
    UserNotFoundException,
    ValidationException,
)
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .availability import parse_weekly_schedule
from .base import BaseService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("last_name", "first_name", "email", "phone", "role")


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def _validate_role(role: Any) -> str:
    try:
        return RoleName(role).value
    except ValueError:
        raise ValidationException(
            f"Rôle invalide: {role!r}",
            code="INVALID_ROLE",
            details={"allowed": [r.value for r in RoleName]},
        )


class UserService(BaseService):
    """Service layer for people in the directory."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_user_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)

    @BaseService.measure_operation("authenticate")
    def authenticate(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Check credentials and return the user.

        Raises:
            ValidationException: Email or password missing
            UnauthorizedException: Unknown email or wrong password
        """
        email = _normalize_email(email)
        if not email or not password:
            raise ValidationException("Email et mot de passe requis", code="MISSING_CREDENTIALS")

        user = self.repository.get_by_email(email)
        if user is None or not user.hashed_password:
            verify_password(password, DUMMY_HASH_FOR_TIMING_ATTACK)
            self.logger.info(f"Failed login for {email}")
            raise UnauthorizedException("Email ou mot de passe incorrect", code="INVALID_CREDENTIALS")
        if not verify_password(password, user.hashed_password):
            self.logger.info(f"Failed login for {email}")
            raise UnauthorizedException("Email ou mot de passe incorrect", code="INVALID_CREDENTIALS")

        self.logger.info(f"User {user.id} logged in")
        return user

    @BaseService.measure_operation("list_users")
    def list_users(self, role: Optional[str] = None) -> List[User]:
        if role:
            role = _validate_role(role)
        return self.repository.list_users(role)

    def get_user(self, user_id: str) -> User:
        user = self.repository.get_by_id(user_id)
        if user is None:
            raise UserNotFoundException(user_id)
        return user

    def _ensure_email_free(self, email: str, exclude_id: Optional[str] = None) -> None:
        existing = self.repository.get_by_email(email)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateEmailException(email)

    @BaseService.measure_operation("create_user")
    def create_user(
        self,
        last_name: str,
        first_name: str,
        email: str,
        password: str,
        role: str,
        phone: Optional[str] = None,
        availability: Optional[Dict[str, Any]] = None,
    ) -> User:
        """
        Create a person.

        Raises:
            ValidationException: Invalid role, or a schedule for a non-instructor
            DuplicateEmailException: Email already used
        """
        role = _validate_role(role)
        email = _normalize_email(email)
        if not email:
            raise ValidationException("Email requis", code="MISSING_EMAIL")

        windows = parse_weekly_schedule(availability) if availability else []
        if windows and role != RoleName.INSTRUCTOR.value:
            raise ValidationException(
                "Seuls les moniteurs ont des disponibilités", code="NOT_AN_INSTRUCTOR"
            )

        self._ensure_email_free(email)

        with self.transaction():
            try:
                user = self.repository.create(
                    last_name=last_name.strip(),
                    first_name=first_name.strip(),
                    email=email,
                    phone=(phone or "").strip() or None,
                    role=role,
                    hashed_password=get_password_hash(password),
                )
            except RepositoryIntegrityException:
                raise DuplicateEmailException(email)
            if windows:
                self.availability_repository.replace_schedule(user.id, windows)

        self.db.expire(user, ["availability_windows"])
        self.logger.info(f"Created {role} {user.id}")
        return user

    @BaseService.measure_operation("update_user")
    def update_user(self, user_id: str, changes: Dict[str, Any]) -> User:
        """
        Apply a partial profile update.

        ``password`` is re-hashed. A user who stops being an instructor
        loses their schedule.
        """
        user = self.get_user(user_id)
        updates: Dict[str, Any] = {}

        for field_name in UPDATABLE_FIELDS:
            if field_name not in changes or changes[field_name] is None:
                continue
            value = changes[field_name]
            if field_name == "email":
                value = _normalize_email(value)
                if not value:
                    raise ValidationException("Email requis", code="MISSING_EMAIL")
                self._ensure_email_free(value, exclude_id=user.id)
            elif field_name == "role":
                value = _validate_role(value)
            elif isinstance(value, str):
                value = value.strip()
                if field_name in ("last_name", "first_name") and not value:
                    raise ValidationException(f"{field_name} ne peut pas être vide", code="MISSING_FIELD")
            updates[field_name] = value

        if changes.get("password"):
            updates["hashed_password"] = get_password_hash(changes["password"])

        if not updates:
            return user

        leaving_instructor = (
            user.role == RoleName.INSTRUCTOR.value
            and updates.get("role", user.role) != RoleName.INSTRUCTOR.value
        )

        with self.transaction():
            try:
                self.repository.update(user.id, **updates)
            except RepositoryIntegrityException:
                raise DuplicateEmailException(updates.get("email", user.email))
            if leaving_instructor:
                self.availability_repository.replace_schedule(user.id, [])

        self.db.expire(user, ["availability_windows"])
        self.logger.info(f"Updated user {user.id}: {sorted(updates)}")
        return user

    @BaseService.measure_operation("set_availability")
    def set_availability(self, user_id: str, schedule: Any) -> User:
        """
        Replace an instructor's weekly schedule.

        An empty schedule removes every window, making the instructor
        unrestricted again.
        """
        user = self.get_user(user_id)
        if not user.is_instructor:
            raise ValidationException(
                "Seuls les moniteurs ont des disponibilités", code="NOT_AN_INSTRUCTOR"
            )
        windows = parse_weekly_schedule(schedule)

        with self.transaction():
            self.availability_repository.replace_schedule(user.id, windows)

        self.db.expire(user, ["availability_windows"])
        self.logger.info(f"Replaced schedule of {user.id} with {len(windows)} window(s)")
        return user

    @BaseService.measure_operation("delete_user")
    def delete_user(self, user_id: str) -> int:
        """
        Delete a person.

        Reservations they were teaching are kept and detached
        (instructor_id set to NULL). Returns the number of detached
        reservations.
        """
        user = self.get_user(user_id)
        with self.transaction():
            detached = self.reservation_repository.detach_instructor(user.id)
            self.repository.delete(user.id)

        # Detached reservations still in the session reference the deleted user
        self.db.expire_all()
        self.logger.info(f"Deleted user {user_id}, detached {detached} reservation(s)")
        return detached
