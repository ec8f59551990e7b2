# gpae/core/exceptions.py
"""
Domain-specific exceptions for the GPAE booking API.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def _headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
            headers=self._headers(),
        )


class ValidationException(DomainException):
    """Raised when input or business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class AvailabilityException(DomainException):
    """Raised when an instructor is not working at the requested time."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def _headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class RateLimitException(DomainException):
    """Raised when a caller exceeds its rate limit."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str, retry_after_s: float, code: str = "RATE_LIMITED"):
        super().__init__(
            message=message,
            code=code,
            details={"retry_after_s": int(retry_after_s)},
        )
        self.retry_after_s = retry_after_s

    def _headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(max(1, int(self.retry_after_s)))}


class ServiceException(DomainException):
    """Raised when a service operation fails."""


class DependencyException(DomainException):
    """Raised when the store or another backing service is unreachable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class DeliveryException(DependencyException):
    """Raised when the mail transport rejected every delivery."""

    status_code = status.HTTP_502_BAD_GATEWAY


# Specific business exceptions


class InvalidSlotException(ValidationException):
    """Raised when a reservation slot is not a valid instant."""

    def __init__(self, raw_slot: Any, reason: Optional[str] = None):
        super().__init__(
            message=reason or "Slot invalide, format ISO requis",
            code="INVALID_SLOT",
            details={"slot": str(raw_slot) if raw_slot is not None else None},
        )


class InvalidStatusException(ValidationException):
    """Raised when a status value or transition is not allowed."""

    def __init__(self, message: str, *, current: Optional[str] = None, requested: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_STATUS",
            details={"current": current, "requested": requested},
        )


class InstructorNotFoundException(NotFoundException):
    def __init__(self, instructor_id: str):
        super().__init__(
            message="Moniteur introuvable",
            code="INSTRUCTOR_NOT_FOUND",
            details={"instructor_id": instructor_id},
        )


class UserNotFoundException(NotFoundException):
    def __init__(self, user_id: str):
        super().__init__(
            message="Utilisateur non trouvé",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class ReservationNotFoundException(NotFoundException):
    def __init__(self, reservation_id: str):
        super().__init__(
            message="Réservation non trouvée",
            code="RESERVATION_NOT_FOUND",
            details={"reservation_id": reservation_id},
        )


class SlotAlreadyBookedException(ConflictException):
    """Raised when the instructor already holds an active reservation at the slot."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "Ce créneau est déjà réservé",
            code="SLOT_ALREADY_BOOKED",
            details=details or {},
        )


class DuplicateStudentBookingException(ConflictException):
    """Raised when the student already holds a reservation in the same hour."""

    def __init__(self, email: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Vous avez déjà une réservation sur ce créneau",
            code="DUPLICATE_STUDENT_BOOKING",
            details={"email": email, **(details or {})},
        )


class NoInstructorAvailableException(ConflictException):
    def __init__(self, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Aucun moniteur disponible sur ce créneau",
            code="NO_INSTRUCTOR_AVAILABLE",
            details=details or {},
        )


class OutsideAvailabilityException(AvailabilityException):
    def __init__(self, instructor_id: str, weekday: int, local_time: str):
        super().__init__(
            message="Le moniteur n'est pas disponible sur ce créneau",
            code="OUTSIDE_AVAILABILITY",
            details={
                "instructor_id": instructor_id,
                "weekday": weekday,
                "local_time": local_time,
            },
        )


class DuplicateEmailException(ConflictException):
    def __init__(self, email: str):
        super().__init__(
            message="Email déjà utilisé",
            code="DUPLICATE_EMAIL",
            details={"email": email},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


class RepositoryIntegrityException(RepositoryException):
    """Raised when a write violates a database constraint."""


# Aliases
ValidationError = ValidationException
AuthorizationError = ForbiddenException
DependencyError = DependencyException
