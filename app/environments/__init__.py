"""
Environments Module - identity provider integrations.

environments/
├── __init__.py           # Module exports
├── base.py               # IdentityProvider contract and errors
└── google/
    └── auth/             # Google OAuth / OpenID Connect
        ├── client.py     # Authorization URL, code exchange, id_token verification
        └── schemas.py    # Token endpoint and id_token data structures
"""

from app.environments.base import (
    IdentityProvider,
    IdentityClaims,
    OAuthTokens,
    EnvironmentError,
    AuthenticationError,
)

__all__ = [
    "IdentityProvider",
    "IdentityClaims",
    "OAuthTokens",
    "EnvironmentError",
    "AuthenticationError",
]
