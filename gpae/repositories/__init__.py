"""
Repository Pattern Implementation for the GPAE booking API

Usage:
    from gpae.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_reservation_repository(db)
    existing = repository.find_by_slot_and_instructor(slot, instructor_id)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .email_log_repository import EmailLogRepository
from .factory import RepositoryFactory
from .reservation_repository import ReservationRepository
from .user_repository import UserRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "EmailLogRepository",
    "RepositoryFactory",
    "ReservationRepository",
    "UserRepository",
]
