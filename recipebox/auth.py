"""Bearer-token checks.

Tokens are issued elsewhere; this module only verifies them. A token is an
HS256 JWT whose ``id`` (or ``sub``) claim names the user.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings, get_settings
from .errors import Forbidden, Unauthorized

logger = logging.getLogger("recipebox.auth")

bearer = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: str
    email: Optional[str] = None


def verify_token(token: str, settings: Settings) -> CurrentUser:
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.InvalidTokenError as exc:
        logger.info("rejected bearer token: %s", exc)
        raise Forbidden()
    user_id = claims.get("id") or claims.get("sub")
    if not user_id:
        raise Forbidden()
    return CurrentUser(id=str(user_id), email=claims.get("email"))


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    settings: Settings = Depends(get_settings),
) -> Optional[CurrentUser]:
    if credentials is None:
        return None
    return verify_token(credentials.credentials, settings)


def get_current_user(user: Optional[CurrentUser] = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise Unauthorized()
    return user


def get_recipe_writer(
    user: Optional[CurrentUser] = Depends(get_optional_user),
    settings: Settings = Depends(get_settings),
) -> Optional[CurrentUser]:
    """Caller of a recipe write; anonymous only when writes are left open."""
    if user is None and settings.recipe_writes_require_auth:
        raise Unauthorized()
    return user
