# gpae/models/user.py
"""
User model for the GPAE booking API.

Admins, instructors ("moniteurs") and students all live in the users
table, differentiated by the role column. Instructors may carry a weekly
availability schedule (see gpae.models.availability).
"""

import logging
from typing import Any, Dict

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class User(Base):
    """
    A person known to the driving school.

    Attributes:
        id: ULID primary key (sorts in creation order)
        last_name: Family name ("nom")
        first_name: Given name ("prenom")
        email: Optional unique login address, stored lower-cased
        phone: Optional phone number ("tel")
        role: admin, instructor or student
        hashed_password: Bcrypt hash
        created_at: Account creation timestamp
        updated_at: Last update timestamp

    Relationships:
        availability_windows: Weekly schedule, instructors only
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    last_name = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(30), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value, index=True)
    hashed_password = Column(String(255), nullable=True)
    created_at = Column(UTCDateTime(), server_default=func.now())
    updated_at = Column(UTCDateTime(), onupdate=func.now())

    availability_windows = relationship(
        "AvailabilityWindow",
        back_populates="instructor",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    @property
    def is_instructor(self) -> bool:
        return self.role == RoleName.INSTRUCTOR.value

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.full_name} ({self.role})>"

    def to_profile(self) -> Dict[str, Any]:
        """Profile returned on login, with the field names the front-end reads."""
        return {
            "id": self.id,
            "email": self.email,
            "nom": self.last_name,
            "prenom": self.first_name,
            "role": self.role,
            "tel": self.phone,
        }
