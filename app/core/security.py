"""
Security utilities - session token minting and verification.

Session tokens are HS256 JWTs signed with SECRET_KEY. They carry the
verified identity claims of the user, so the server never has to remember
who is logged in: whoever holds a valid, unexpired token is that user.
"""

import time
from typing import Any, Dict, Optional, Tuple

from jose import JWTError, jwt  # python-jose library for JWT encoding/decoding

from app.core.config import settings


class SessionTokenError(Exception):
    """Base exception for session token failures."""
    pass


class InvalidTokenError(SessionTokenError):
    """Raised when a token is malformed or its signature does not match."""
    pass


class TokenExpiredError(SessionTokenError):
    """Raised when a token's exp claim is not in the future."""
    pass


def _now(now: Optional[int]) -> int:
    return int(time.time()) if now is None else int(now)


def create_session_token(
    claims: Dict[str, Any],
    subject: str,
    now: Optional[int] = None,
    lifetime: Optional[int] = None,
) -> Tuple[str, int, int]:
    """
    Mint a signed session token.

    Args:
        claims: Identity claims to embed (exp/iat/sub are overwritten)
        subject: The user's id at the identity provider ("sub")
        now: Issue time as a Unix timestamp (defaults to the current time)
        lifetime: Seconds until expiry (defaults to SESSION_TOKEN_EXPIRE_SECONDS)

    Returns:
        (token, issued_at, expires_at)

    JWT Structure:
        1. Header: {"alg": "HS256", "typ": "JWT"}
        2. Payload: identity claims + {"sub", "iat", "exp"}
        3. Signature: HMAC-SHA256(header + payload, SECRET_KEY)

    The payload is only base64 encoded, anyone holding the token can read it.
    """
    # Calculate issue and expiry times
    # - Unix seconds, matching the "iat" and "exp" claims
    # - `now` is injectable so tests can mint tokens at a fixed clock
    issued_at = _now(now)
    expires_at = issued_at + (
        lifetime if lifetime is not None else settings.SESSION_TOKEN_EXPIRE_SECONDS
    )

    # Build the payload: identity claims first, then our own registered claims
    # so a provider "exp" or "sub" can never survive into the session token
    to_encode = dict(claims)
    to_encode.update({"sub": subject, "iat": issued_at, "exp": expires_at})

    # Sign and encode the token as "header.payload.signature"
    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, issued_at, expires_at


def decode_session_token(token: str, now: Optional[int] = None) -> Dict[str, Any]:
    """
    Verify a session token and return its claims.

    The signature is checked by python-jose; expiry is checked here against
    `now` so callers (and tests) control the clock.

    Raises:
        InvalidTokenError: Bad signature, wrong algorithm, malformed token,
                           or missing sub/exp claims
        TokenExpiredError: exp is at or before `now`
    """
    # ---------------------------------------------------------------------------
    # STEP 1: Verify the signature
    # ---------------------------------------------------------------------------
    # algorithms is pinned, so a token claiming "none" or RS256 is rejected
    # verify_exp is off here; expiry is checked in STEP 3 against `now`
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": False, "verify_aud": False},
        )
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    # ---------------------------------------------------------------------------
    # STEP 2: Require the claims every session token is minted with
    # ---------------------------------------------------------------------------
    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or not payload.get("sub"):
        raise InvalidTokenError("Token is missing sub or exp")

    # ---------------------------------------------------------------------------
    # STEP 3: Check expiry
    # ---------------------------------------------------------------------------
    # exp == now already counts as expired
    if exp <= _now(now):
        raise TokenExpiredError("Token has expired")

    return payload


def decode_unverified_claims(token: str) -> Dict[str, Any]:
    """
    Read a token's claims without verifying it.

    Only for clients that display what the server already vouched for;
    never use the result to make an authorization decision on the server.

    Raises:
        InvalidTokenError: If the token cannot be parsed
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e
