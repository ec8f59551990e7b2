# gpae/services/bulk_mail_service.py
"""
Bulk mail for the GPAE booking API

Lets an admin e-mail every student at once. Sends are rate limited per
admin and every send leaves an EmailLog audit row, whatever its outcome.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import DeliveryException, RateLimitException, ValidationException
from ..models.email_log import EmailLog, EmailLogStatus
from ..models.user import User
from ..ratelimit.decision import Decision
from ..ratelimit.limiter import RateLimiter
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .notification_service import BulkDeliveryResult, NotificationService

logger = logging.getLogger(__name__)


class BulkMailService(BaseService):
    def __init__(
        self,
        db: Session,
        notification_service: NotificationService,
        rate_limiter: RateLimiter,
    ):
        super().__init__(db)
        self.notification_service = notification_service
        self.rate_limiter = rate_limiter
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.email_log_repository = RepositoryFactory.create_email_log_repository(db)

    def collect_recipients(self, exclude: Optional[str] = None) -> List[str]:
        """Distinct lower-cased emails of students and of active reservations."""
        emails = set()
        for email in self.user_repository.list_emails_by_role(RoleName.STUDENT.value):
            emails.add(email.strip().lower())
        for email in self.reservation_repository.list_active_student_emails():
            emails.add(email.strip().lower())
        emails.discard("")
        if exclude:
            emails.discard(exclude.strip().lower())
        return sorted(emails)

    @staticmethod
    def _status_for(result: BulkDeliveryResult) -> str:
        if result.failed == 0:
            return EmailLogStatus.SENT.value
        if result.sent == 0:
            return EmailLogStatus.FAILED.value
        return EmailLogStatus.PARTIAL.value

    @BaseService.measure_operation("send_to_all")
    def send_to_all(self, sender: User, subject: str, message: str) -> Tuple[int, EmailLog, Decision]:
        """
        Send ``message`` to every student.

        Returns:
            (delivered count, audit row, rate-limit decision)

        Raises:
            ValidationException: Empty subject or message
            RateLimitException: Sender exceeded the bulk-mail quota
            DeliveryException: Every delivery failed (the audit row is kept)
        """
        subject = (subject or "").strip()
        message = (message or "").strip()
        if not subject or not message:
            raise ValidationException("Sujet et message requis", code="MISSING_FIELDS")

        sender_key = (sender.email or sender.id).lower()
        decision = self.rate_limiter.hit(sender_key)
        if not decision.allowed:
            raise RateLimitException(
                "Trop d'envois groupés, réessayez plus tard", retry_after_s=decision.retry_after_s
            )

        recipients = self.collect_recipients(exclude=sender.email)
        result = self.notification_service.notify_bulk(recipients, subject, message)

        with self.transaction():
            log = self.email_log_repository.create(
                sender_id=sender.id,
                sender_email=sender.email,
                recipients=recipients,
                subject=subject,
                body=message,
                status=self._status_for(result),
                sent_count=result.sent,
                failed_count=result.failed,
                error="\n".join(result.errors) or None,
            )

        self.logger.info(
            f"Bulk mail {log.id} by {sender.id}: {result.sent}/{len(recipients)} delivered"
        )
        if recipients and result.sent == 0:
            raise DeliveryException(
                "Aucun email n'a pu être envoyé",
                code="DELIVERY_FAILED",
                details={"email_log_id": log.id, "failed": result.failed},
            )
        return result.sent, log, decision
