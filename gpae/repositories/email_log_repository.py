# gpae/repositories/email_log_repository.py
"""Email log repository: append-only audit of bulk sends."""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..models.email_log import EmailLog
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class EmailLogRepository(BaseRepository[EmailLog]):
    def __init__(self, db: Session):
        super().__init__(db, EmailLog)

    def list_recent(self, limit: int = 50) -> List[EmailLog]:
        query = self.db.query(EmailLog).order_by(EmailLog.created_at.desc(), EmailLog.id.desc()).limit(limit)
        return self._execute_query(query)
