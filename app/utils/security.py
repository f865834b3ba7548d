"""
Bearer token verification and role checks.

Tokens are issued by the auth provider (HS256, shared JWT_SECRET). The `id`
claim (or `sub`) names the user, who must exist in the user store.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.errors import AuthenticationError, PermissionDeniedError
from app.core.settings import settings
from app.models.user import User, UserRole
from app.repositories import get_repositories

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 by our own handler
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_days: Optional[int] = None) -> str:
    """Sign a token for user_id. Used by tooling and tests; clients get theirs from the auth provider."""
    expire = datetime.now(timezone.utc) + timedelta(days=expires_days or settings.JWT_EXPIRES_DAYS)
    payload = {"id": user_id, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """Return the user id carried by token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.PyJWTError as e:
        logger.warning(f"⚠️ Rejected bearer token: {e}")
        raise AuthenticationError("Not authorized, token failed")

    user_id = payload.get("id") or payload.get("sub")
    if not user_id:
        raise AuthenticationError("Not authorized, token has no subject")
    return str(user_id)


def _load_user(credentials: Optional[HTTPAuthorizationCredentials]) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")
    user = get_repositories().users.get_user(decode_token(credentials.credentials))
    if user is None:
        raise AuthenticationError("Not authorized, user not found")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    return _load_user(credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[User]:
    """Like get_current_user, but anonymous requests get None instead of 401."""
    if credentials is None:
        return None
    return _load_user(credentials)


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Not authorized as admin")
    return user


def require_field_worker(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.FIELD_WORKER and not user.is_admin:
        raise PermissionDeniedError("Not authorized as field worker")
    return user
