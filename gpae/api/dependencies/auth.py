# gpae/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

Bearer tokens only. The token's ``sub`` is the user id; the user is
reloaded on every request so a deleted account or a changed role takes
effect immediately.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ...auth import PyJWTError, decode_access_token
from ...core.enums import RoleName
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)

STAFF_ROLES = frozenset({RoleName.ADMIN.value, RoleName.INSTRUCTOR.value})


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user from the bearer token.

    Raises:
        UnauthorizedException: Missing, invalid or expired token, or unknown user
    """
    if not token:
        raise UnauthorizedException("Authentification requise", code="NOT_AUTHENTICATED")
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.info(f"Rejected token: {str(e)}")
        raise UnauthorizedException("Jeton invalide ou expiré", code="INVALID_TOKEN")

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        logger.warning("Token payload missing 'sub' field")
        raise UnauthorizedException("Jeton invalide ou expiré", code="INVALID_TOKEN")

    user = RepositoryFactory.create_user_repository(db).get_by_id(user_id)
    if user is None:
        raise UnauthorizedException("Utilisateur inconnu", code="INVALID_TOKEN")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise ForbiddenException("Accès réservé aux administrateurs", code="ADMIN_REQUIRED")
    return current_user


def require_staff(current_user: User = Depends(get_current_user)) -> User:
    """Admins and instructors."""
    if current_user.role not in STAFF_ROLES:
        raise ForbiddenException("Accès réservé au personnel", code="STAFF_REQUIRED")
    return current_user
