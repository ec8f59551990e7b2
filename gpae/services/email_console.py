# gpae/services/email_console.py
import logging
from typing import Any, Dict, Optional

from ..core.config import settings
from .base import BaseService

logger = logging.getLogger(__name__)


class ConsoleEmailService:
    """Email transport that only logs messages. Used in development and tests."""

    def __init__(self, from_email: Optional[str] = None, from_name: Optional[str] = None) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)
        self.from_email = from_email or settings.from_email
        self.from_name = from_name or settings.email_from_name

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        text_content: str,
        html_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        self.logger.info(
            f"[console email] from={self.from_name} <{self.from_email}> to={to_email} "
            f"subject={subject!r}\n{text_content}"
        )
        return {"id": None, "to": to_email, "provider": "console"}
