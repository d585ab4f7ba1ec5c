"""
Auth schemas - Pydantic models for the relay's request/response bodies.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """
    Client surface that started the login.

    Decides where the callback redirects to and how the session token is
    delivered (http-only cookie for web, response body for native).
    """
    WEB = "web"
    NATIVE = "native"


class AuthUser(BaseModel):
    """
    Client-visible projection of a session token.

    Derived from the token claims; the signed token stays authoritative.

    Example:
    {
        "id": "1098765432101234567890",
        "email": "ana@example.com",
        "name": "Ana Diaz",
        "picture": "https://lh3.googleusercontent.com/a/...",
        "exp": 1760720420
    }
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    email_verified: Optional[bool] = None
    locale: Optional[str] = None
    provider: Optional[str] = None
    exp: Optional[int] = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "AuthUser":
        """Build an AuthUser from decoded session token claims."""
        return cls(
            id=str(claims["sub"]),
            email=claims.get("email"),
            name=claims.get("name"),
            picture=claims.get("picture"),
            given_name=claims.get("given_name"),
            family_name=claims.get("family_name"),
            email_verified=claims.get("email_verified"),
            locale=claims.get("locale"),
            provider=claims.get("provider"),
            exp=claims.get("exp"),
        )


class WebTokenResponse(BaseModel):
    """
    Response of POST /api/auth/token for web clients.

    The token itself travels in the Set-Cookie header, never in the body.
    """
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    issued_at: int = Field(..., alias="issuedAt")
    expires_at: int = Field(..., alias="expiresAt")


class NativeTokenResponse(BaseModel):
    """Response of POST /api/auth/token for native clients."""
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")


class SessionResponse(BaseModel):
    """Response of GET /api/auth/session."""
    user: AuthUser
