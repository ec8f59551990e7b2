# gpae/routes/mail.py
"""Admin bulk mail route."""

import logging

from fastapi import APIRouter, Depends, Response

from ..api.dependencies.auth import require_admin
from ..api.dependencies.services import get_bulk_mail_service
from ..models.user import User
from ..ratelimit.headers import apply_decision_headers
from ..schemas.mail import BulkMailRequest, BulkMailResponse
from ..services.bulk_mail_service import BulkMailService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mail"])


@router.post("/send-mail-all", response_model=BulkMailResponse)
def send_mail_all(
    payload: BulkMailRequest,
    response: Response,
    current_user: User = Depends(require_admin),
    bulk_mail_service: BulkMailService = Depends(get_bulk_mail_service),
) -> BulkMailResponse:
    """
    E-mail every student.

    429 when the admin exceeded the bulk-mail quota, 502 when every
    delivery failed.
    """
    count, _, decision = bulk_mail_service.send_to_all(current_user, payload.subject, payload.message)
    apply_decision_headers(response, decision)
    return BulkMailResponse(message=f"{count} email(s) envoyé(s)", count=count)
