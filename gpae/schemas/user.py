"""
Schemas for people and authentication.

Inputs accept the French field names the front-end historically sends
(``nom``, ``prenom``, ``tel``) as well as the English ones.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, EmailStr, Field

from ..core.enums import RoleName
from ..models.user import User
from ..services.availability import schedule_to_payload
from .base import StandardizedModel


class LoginRequest(StandardizedModel):
    # Optional so that a missing field gets the same 400 as an empty one
    email: Optional[str] = None
    password: Optional[str] = None


class UserCreate(StandardizedModel):
    last_name: str = Field(..., min_length=1, validation_alias=AliasChoices("nom", "last_name"))
    first_name: str = Field(..., min_length=1, validation_alias=AliasChoices("prenom", "first_name"))
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: RoleName
    phone: Optional[str] = Field(default=None, validation_alias=AliasChoices("tel", "phone"))
    availability: Optional[Dict[str, Any]] = None


class UserUpdate(StandardizedModel):
    last_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("nom", "last_name"))
    first_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("prenom", "first_name"))
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=1)
    role: Optional[RoleName] = None
    phone: Optional[str] = Field(default=None, validation_alias=AliasChoices("tel", "phone"))


class UserResponse(StandardizedModel):
    id: str
    last_name: str
    first_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str
    nom: str
    prenom: str
    tel: Optional[str] = None
    availability: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            last_name=user.last_name,
            first_name=user.first_name,
            email=user.email,
            phone=user.phone,
            role=user.role,
            nom=user.last_name,
            prenom=user.first_name,
            tel=user.phone,
            availability=schedule_to_payload(user.availability_windows or []),
            created_at=user.created_at,
        )


class LoginResponse(StandardizedModel):
    id: str
    email: Optional[str] = None
    nom: str
    prenom: str
    role: str
    tel: Optional[str] = None
    access_token: str
    token_type: str = "bearer"


class UserCreatedResponse(StandardizedModel):
    message: str
    user: UserResponse


class UserDeletedResponse(StandardizedModel):
    message: str
    detached_reservations: int
