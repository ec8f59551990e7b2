"""
FastAPI dependencies: database session, authentication guards and
service factories.
"""

from .auth import get_current_user, require_admin, require_staff
from .database import get_db
from .services import (
    get_bulk_mail_service,
    get_instructor_availability_service,
    get_notification_service,
    get_reservation_service,
    get_user_service,
)

__all__ = [
    "get_bulk_mail_service",
    "get_current_user",
    "get_db",
    "get_instructor_availability_service",
    "get_notification_service",
    "get_reservation_service",
    "get_user_service",
    "require_admin",
    "require_staff",
]
