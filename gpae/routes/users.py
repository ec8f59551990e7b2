# gpae/routes/users.py
"""
User directory routes (admin only)

Endpoints:
    GET / - List people, optionally by role
    POST / - Create a person
    GET /{user_id} - One person
    PATCH /{user_id} - Partial profile update
    PUT /{user_id}/availability - Replace an instructor's weekly schedule
    DELETE /{user_id} - Delete a person, detaching their reservations
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ..api.dependencies.auth import require_admin
from ..api.dependencies.services import get_user_service
from ..models.user import User
from ..schemas.user import (
    UserCreate,
    UserCreatedResponse,
    UserDeletedResponse,
    UserResponse,
    UserUpdate,
)
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(
    role: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    return [UserResponse.from_user(user) for user in user_service.list_users(role)]


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    _: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserCreatedResponse:
    user = user_service.create_user(
        last_name=payload.last_name,
        first_name=payload.first_name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        phone=payload.phone,
        availability=payload.availability,
    )
    return UserCreatedResponse(message="Utilisateur ajouté", user=UserResponse.from_user(user))


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    _: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.from_user(user_service.get_user(user_id))


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    payload: UserUpdate,
    _: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    changes = payload.model_dump(exclude_unset=True)
    return UserResponse.from_user(user_service.update_user(user_id, changes))


@router.put("/{user_id}/availability", response_model=UserResponse)
def set_availability(
    user_id: str,
    schedule: Dict[str, Any] = Body(...),
    _: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.from_user(user_service.set_availability(user_id, schedule))


@router.delete("/{user_id}", response_model=UserDeletedResponse)
def delete_user(
    user_id: str,
    _: User = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserDeletedResponse:
    detached = user_service.delete_user(user_id)
    return UserDeletedResponse(message="Utilisateur supprimé", detached_reservations=detached)
