"""
Database models for the GPAE booking API.

- User: admins, instructors and students
- AvailabilityWindow: weekly instructor schedule
- Reservation: one-hour bookings
- EmailLog: bulk e-mail audit trail
"""

from .availability import AvailabilityWindow
from .email_log import EmailLog, EmailLogStatus
from .reservation import ACTIVE_STATUSES, Reservation, ReservationStatus
from .user import User

__all__ = [
    "ACTIVE_STATUSES",
    "AvailabilityWindow",
    "EmailLog",
    "EmailLogStatus",
    "Reservation",
    "ReservationStatus",
    "User",
]
