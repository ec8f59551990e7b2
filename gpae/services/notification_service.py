# gpae/services/notification_service.py
"""
Notification Service for the GPAE booking API

Sends the reservation confirmation/cancellation emails and the admin bulk
messages. Delivery is best-effort: every failure is logged and counted,
never raised to the caller and never retried.

Reservation notices are plain snapshots so that they can be sent from a
background task after the request's database session is gone.
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Iterable, List, Optional, Union

from ..models.reservation import Reservation
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base import BaseService
from .email import EmailTransport, get_email_service
from .template_service import TemplateService

logger = logging.getLogger(__name__)

SUBJECT_RESERVATION_CREATED = "Confirmation de réservation"
SUBJECT_RESERVATION_CANCELLED = "Annulation de réservation"


@dataclass(frozen=True)
class ReservationNotice:
    """What the reservation emails need, detached from the ORM session."""

    reservation_id: str
    slot: datetime
    first_name: str
    last_name: str
    email: Optional[str]
    instructor_name: Optional[str] = None

    @classmethod
    def from_reservation(
        cls, reservation: Reservation, instructor_name: Optional[str] = None
    ) -> "ReservationNotice":
        if instructor_name is None and reservation.instructor is not None:
            instructor_name = reservation.instructor.full_name
        return cls(
            reservation_id=reservation.id,
            slot=reservation.slot,
            first_name=reservation.student_first_name,
            last_name=reservation.student_last_name,
            email=reservation.student_email,
            instructor_name=instructor_name,
        )


@dataclass
class BulkDeliveryResult:
    sent: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.sent + self.failed


NoticeSource = Union[Reservation, ReservationNotice]


class NotificationService:
    """
    Central notification service using Jinja2 templates.

    Uses dependency injection for the template and email services.
    """

    def __init__(
        self,
        template_service: Optional[TemplateService] = None,
        email_service: Optional[EmailTransport] = None,
    ) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)
        self.template_service = template_service or TemplateService()
        self.email_service = email_service or get_email_service()

    @staticmethod
    def _as_notice(source: NoticeSource, instructor_name: Optional[str]) -> ReservationNotice:
        if isinstance(source, ReservationNotice):
            return source
        return ReservationNotice.from_reservation(source, instructor_name)

    def _send_reservation_email(
        self, kind: str, template_name: str, subject: str, notice: ReservationNotice
    ) -> bool:
        if not notice.email:
            self.logger.debug(f"No email on reservation {notice.reservation_id}, skipping {kind}")
            return False

        try:
            body = self.template_service.render_template(
                template_name,
                first_name=notice.first_name,
                last_name=notice.last_name,
                slot=notice.slot,
                instructor_name=notice.instructor_name,
            )
            self.email_service.send_email(to_email=notice.email, subject=subject, text_content=body)
        except Exception as e:
            prometheus_metrics.record_notification(kind, "failed")
            self.logger.error(
                f"Failed to send {kind} email for reservation {notice.reservation_id}: {str(e)}"
            )
            return False

        prometheus_metrics.record_notification(kind, "sent")
        self.logger.info(f"{kind} email sent for reservation {notice.reservation_id}")
        return True

    @BaseService.measure_operation("notify_created")
    def notify_created(self, reservation: NoticeSource, instructor_name: Optional[str] = None) -> bool:
        """Send the booking confirmation to the student. Returns False when nothing was sent."""
        return self._send_reservation_email(
            "reservation_created",
            "email/reservation_created.txt",
            SUBJECT_RESERVATION_CREATED,
            self._as_notice(reservation, instructor_name),
        )

    @BaseService.measure_operation("notify_cancelled")
    def notify_cancelled(self, reservation: NoticeSource, instructor_name: Optional[str] = None) -> bool:
        """Tell the student their booking was cancelled. Returns False when nothing was sent."""
        return self._send_reservation_email(
            "reservation_cancelled",
            "email/reservation_cancelled.txt",
            SUBJECT_RESERVATION_CANCELLED,
            self._as_notice(reservation, instructor_name),
        )

    @BaseService.measure_operation("notify_bulk")
    def notify_bulk(self, recipients: Iterable[str], subject: str, body: str) -> BulkDeliveryResult:
        """
        Send one email per recipient.

        Per-recipient failures are collected in the result, never raised.
        """
        result = BulkDeliveryResult()
        try:
            text = self.template_service.render_template("email/bulk_message.txt", message=body)
        except Exception as e:
            self.logger.error(f"Failed to render bulk message: {str(e)}")
            text = body

        for recipient in recipients:
            try:
                self.email_service.send_email(to_email=recipient, subject=subject, text_content=text)
            except Exception as e:
                result.failed += 1
                result.errors.append(f"{recipient}: {str(e)}")
                prometheus_metrics.record_notification("bulk", "failed")
                self.logger.error(f"Failed to send bulk email to {recipient}: {str(e)}")
                continue
            result.sent += 1
            prometheus_metrics.record_notification("bulk", "sent")

        self.logger.info(f"Bulk email '{subject}': {result.sent} sent, {result.failed} failed")
        return result
