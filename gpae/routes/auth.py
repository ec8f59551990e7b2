# gpae/routes/auth.py
"""Login endpoint."""

import logging

from fastapi import APIRouter, Depends

from ..api.dependencies.services import get_user_service
from ..auth import create_access_token
from ..schemas.user import LoginRequest, LoginResponse
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    user_service: UserService = Depends(get_user_service),
) -> LoginResponse:
    """Check credentials and return the profile with a bearer token."""
    user = user_service.authenticate(payload.email, payload.password)
    token = create_access_token(data={"sub": user.id, "role": user.role})
    return LoginResponse(**user.to_profile(), access_token=token)
