"""
Authentication dependencies.

Admin endpoints are guarded by a shared secret sent in the
`x-admin-password` header. End users sign in with Google on the client and
send the resulting ID token as a bearer token; the backend only verifies it.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from backend.config import Settings, get_settings
from shared.constants import ADMIN_PASSWORD_HEADER
from shared.types import User

logger = logging.getLogger(__name__)

security_optional = HTTPBearer(auto_error=False)


class InvalidTokenError(Exception):
    pass


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> User:
        ...


@dataclass
class GoogleIdentityVerifier:
    """Verifies Google-issued ID tokens for our OAuth client."""

    client_id: str

    def __post_init__(self):
        self._request = google_requests.Request()

    def verify(self, token: str) -> User:
        try:
            profile = id_token.verify_oauth2_token(
                token, self._request, self.client_id
            )
        except ValueError as e:
            raise InvalidTokenError(str(e)) from e
        if not profile.get("sub"):
            raise InvalidTokenError("Token has no subject")
        return User.from_profile(profile)


_identity_verifier: IdentityVerifier | None = None


def get_identity_verifier() -> Optional[IdentityVerifier]:
    """Return the shared verifier, or None when sign-in is not configured."""
    global _identity_verifier
    if _identity_verifier:
        return _identity_verifier

    settings = get_settings()
    if not settings.google_client_id:
        return None
    _identity_verifier = GoogleIdentityVerifier(settings.google_client_id)
    return _identity_verifier


def check_admin_password(candidate: Optional[str], expected: Optional[str]) -> bool:
    # No configured password means nobody is an admin.
    if not candidate or not expected:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def require_admin(
    x_admin_password: Optional[str] = Header(None, alias=ADMIN_PASSWORD_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    if not check_admin_password(x_admin_password, settings.admin_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
    verifier: Optional[IdentityVerifier] = Depends(get_identity_verifier),
) -> Optional[User]:
    """Return the signed-in user, or None for anonymous callers."""
    if credentials is None or verifier is None:
        return None
    try:
        return verifier.verify(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("Rejected identity token: %s", e)
        return None


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user
