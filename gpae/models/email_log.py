# gpae/models/email_log.py
"""Audit trail of bulk e-mail sends."""

from enum import Enum

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .types import UTCDateTime


class EmailLogStatus(str, Enum):
    SENT = "sent"
    PARTIAL = "partial"
    FAILED = "failed"


class EmailLog(Base):
    """One bulk send by an admin. Audit only: nothing is ever retried from here."""

    __tablename__ = "email_logs"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    sender_id = Column(String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sender_email = Column(String(255), nullable=True)
    recipients = Column(JSON, nullable=False, default=list)
    subject = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    status = Column(String(20), nullable=False)
    sent_count = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    created_at = Column(UTCDateTime(), server_default=func.now(), index=True)

    def __repr__(self) -> str:
        return f"<EmailLog {self.id}: {self.status} {self.sent_count}/{len(self.recipients or [])}>"
