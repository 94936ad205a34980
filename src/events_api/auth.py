from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthenticationError, PermissionDeniedError
from .models import SessionUser
from .repositories import Repository, get_repository

_security = HTTPBearer(auto_error=False)
_PBKDF2_ITERATIONS = 120_000


# PUBLIC_INTERFACE
def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Return 'salt$hexdigest' using salted PBKDF2-SHA256."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), _PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


# PUBLIC_INTERFACE
def verify_password(password: str, stored: str) -> bool:
    salt, sep, _ = stored.partition("$")
    if not sep:
        return False
    try:
        candidate = hash_password(password, salt)
    except ValueError:
        return False
    return hmac.compare_digest(candidate, stored)


def create_token() -> str:
    return secrets.token_hex(24)


# PUBLIC_INTERFACE
def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
    repo: Repository = Depends(get_repository),
) -> SessionUser:
    """
    Resolve the bearer token to a session user.

    Raises:
        AuthenticationError(401) if the token is missing or unknown.
    """
    token = creds.credentials.strip() if creds is not None else ""
    session = repo.fetch_session(token) if token else None
    if session is None:
        raise AuthenticationError("Authentication required.")
    return session


# PUBLIC_INTERFACE
def require_admin(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    """
    Allow the request only for admins.

    Raises:
        PermissionDeniedError(403) for authenticated non-admin users.
    """
    if user["role"] != "admin":
        raise PermissionDeniedError("Admin access required.")
    return user
