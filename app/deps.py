"""
Dependencies module - reusable FastAPI dependencies for route handlers.

get_current_user is the Protected Resource Guard: any route declaring
`user: AuthUser = Depends(get_current_user)` only runs for requests that
carry a valid, unexpired session token.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.errors import InvalidToken, TokenExpired, Unauthenticated
from app.core.security import InvalidTokenError, TokenExpiredError, decode_session_token
from app.environments.base import IdentityProvider
from app.environments.google import GoogleAuthClient
from app.schemas.auth import AuthUser


logger = logging.getLogger("relay.deps")

# ---------------------------------------------------------------------------
# SECURITY SCHEME
# ---------------------------------------------------------------------------
# auto_error=False: a missing header is not an error by itself, web clients
# authenticate with the session cookie instead.
security = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """
    Extract a candidate session token.

    Native clients send "Authorization: Bearer <token>"; web clients send
    the http-only cookie. The header wins when both are present.
    """
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.COOKIE_NAME) or None


def get_current_user(token: Optional[str] = Depends(get_session_token)) -> AuthUser:
    """
    Validate the session token and return the authenticated user.

    Raises:
        Unauthenticated (401): No token in header or cookie
        InvalidToken (401): Signature mismatch or malformed token
        TokenExpired (401): Token past its exp; same response body as InvalidToken
    """
    # ---------------------------------------------------------------------------
    # STEP 1: Make sure the request carries a token at all
    # ---------------------------------------------------------------------------
    # No header and no cookie is a different 401 body from a bad token
    if not token:
        raise Unauthenticated()

    # ---------------------------------------------------------------------------
    # STEP 2: Verify signature and expiry
    # ---------------------------------------------------------------------------
    # Expired and forged tokens map to the same response body, so a caller
    # can't tell which tokens were once valid
    try:
        claims = decode_session_token(token)
    except TokenExpiredError:
        logger.info("Rejected expired session token")
        raise TokenExpired()
    except InvalidTokenError as e:
        logger.warning(f"Rejected invalid session token: {e}")
        raise InvalidToken()

    # ---------------------------------------------------------------------------
    # STEP 3: Build the user from the verified claims
    # ---------------------------------------------------------------------------
    # No lookup: the token itself is the session
    return AuthUser.from_claims(claims)


def get_identity_provider() -> IdentityProvider:
    """Identity provider used by the token endpoint (overridable in tests)."""
    return GoogleAuthClient()
