"""
Google OAuth Schemas - Data structures for Google authentication.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# Reference: https://developers.google.com/identity/protocols/oauth2/scopes
PROFILE_SCOPES = ["openid", "profile", "email"]

# Registered claims that describe the provider's id_token rather than the user.
# They are dropped before the claims are re-signed into a session token.
SESSION_CLAIM_EXCLUSIONS = (
    "exp",
    "iat",
    "nbf",
    "aud",
    "iss",
    "azp",
    "at_hash",
    "nonce",
    "jti",
)


class GoogleTokenResponse(BaseModel):
    """
    Response from Google's token endpoint.

    Example response from Google:
    {
        "access_token": "ya29.a0AfB_byC...",
        "expires_in": 3599,
        "scope": "openid https://www.googleapis.com/auth/userinfo.email",
        "token_type": "Bearer",
        "id_token": "eyJhbGciOiJSUzI1NiIs..."
    }
    """
    access_token: Optional[str] = Field(None, description="OAuth access token")
    token_type: str = Field(default="Bearer", description="Token type (usually Bearer)")
    expires_in: Optional[int] = Field(None, description="Seconds until expiration")
    scope: Optional[str] = Field(None, description="Space-separated scopes granted")
    id_token: Optional[str] = Field(None, description="JWT with user info (OpenID)")

    def get_scopes_list(self) -> List[str]:
        """Convert space-separated scope string to list."""
        if self.scope:
            return self.scope.split()
        return []


class GoogleIdentityClaims(BaseModel):
    """
    Claims of a verified Google id_token.

    Unknown claims are kept so they flow into the session token unchanged.

    Example:
    {
        "sub": "123456789",
        "email": "user@gmail.com",
        "email_verified": true,
        "name": "John Doe",
        "picture": "https://lh3.googleusercontent.com/a/...",
        "exp": 1760720420
    }
    """
    model_config = ConfigDict(extra="allow")

    sub: str = Field(..., description="Unique Google user ID")
    email: Optional[str] = Field(None, description="User's email address")
    email_verified: Optional[bool] = Field(None, description="Is email verified?")
    name: Optional[str] = Field(None, description="User's display name")
    given_name: Optional[str] = Field(None, description="First name")
    family_name: Optional[str] = Field(None, description="Last name")
    picture: Optional[str] = Field(None, description="Profile picture URL")
    locale: Optional[str] = Field(None, description="User's locale (e.g., 'en')")
    exp: Optional[int] = Field(None, description="id_token expiry")

