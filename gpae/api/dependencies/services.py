# gpae/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...ratelimit.dependency import get_rate_limiter
from ...ratelimit.limiter import RateLimiter
from ...services.availability import InstructorAvailabilityService
from ...services.bulk_mail_service import BulkMailService
from ...services.notification_service import NotificationService
from ...services.reservation_service import ReservationService
from ...services.user_service import UserService
from .database import get_db


@lru_cache(maxsize=1)
def _notification_service_singleton() -> NotificationService:
    return NotificationService()


def get_notification_service() -> NotificationService:
    """Shared notification service; holds no database session."""
    return _notification_service_singleton()


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    return ReservationService(db)


def get_instructor_availability_service(
    db: Session = Depends(get_db),
) -> InstructorAvailabilityService:
    return InstructorAvailabilityService(db)


def get_bulk_mail_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> BulkMailService:
    return BulkMailService(db, notification_service, rate_limiter)
