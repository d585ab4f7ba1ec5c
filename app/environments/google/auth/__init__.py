"""
Google Auth Module - OAuth 2.0 / OpenID Connect against Google.

Flow as seen from the relay:
============================
1. /api/auth/authorize redirects the user to Google's consent screen
2. Google redirects to the relay's single callback with a code
3. The client posts the code to /api/auth/token
4. The relay exchanges it (with its client secret) for an id_token
5. The id_token is verified against Google's published keys
"""

from app.environments.google.auth.client import GoogleAuthClient
from app.environments.google.auth.schemas import (
    GoogleTokenResponse,
    GoogleIdentityClaims,
    PROFILE_SCOPES,
    SESSION_CLAIM_EXCLUSIONS,
)

__all__ = [
    "GoogleAuthClient",
    "GoogleTokenResponse",
    "GoogleIdentityClaims",
    "PROFILE_SCOPES",
    "SESSION_CLAIM_EXCLUSIONS",
]
