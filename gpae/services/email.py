# gpae/services/email.py
"""
Email Service for the GPAE booking API

Sends plain-text emails through the Resend API. The console transport
in email_console.py is the default for development and tests; the
provider is picked from EMAIL_PROVIDER by get_email_service().
"""

import logging
from typing import Any, Dict, Optional, Union

import resend

from ..core.config import settings
from ..core.exceptions import ServiceException
from .base import BaseService
from .email_console import ConsoleEmailService

logger = logging.getLogger(__name__)


def format_sender(from_email: str, from_name: Optional[str] = None) -> str:
    if from_name:
        return f'"{from_name}" <{from_email}>'
    return from_email


class EmailService:
    """
    Service for sending emails using Resend API.

    Holds no database session: notifications run in background tasks after
    the request session is closed.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)

        api_key = api_key or settings.resend_api_key
        if not api_key:
            raise ServiceException("Resend API key not configured")

        resend.api_key = api_key
        self.from_email = from_email or settings.from_email
        self.from_name = from_name or settings.email_from_name
        self.logger.info("EmailService initialized successfully")

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        text_content: str,
        html_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send an email using Resend.

        Args:
            to_email: Recipient email address
            subject: Email subject
            text_content: Plain text body
            html_content: Optional HTML body

        Returns:
            Dict containing the Resend API response

        Raises:
            ServiceException: If email sending fails
        """
        email_data: Dict[str, Any] = {
            "from": format_sender(self.from_email, self.from_name),
            "to": to_email,
            "subject": subject,
            "text": text_content,
        }
        if html_content:
            email_data["html"] = html_content

        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            self.logger.error(f"Failed to send email to {to_email}: {str(e)}")
            raise ServiceException(f"Failed to send email: {str(e)}") from e

        self.logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
        return dict(response) if response else {}


EmailTransport = Union[EmailService, ConsoleEmailService]


def get_email_service() -> EmailTransport:
    """Build the transport configured by EMAIL_PROVIDER."""
    if settings.email_provider == "resend":
        return EmailService()
    return ConsoleEmailService()
