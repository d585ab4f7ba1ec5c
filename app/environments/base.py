"""
Base classes and interfaces for identity providers.

The relay talks to exactly one kind of upstream: an OAuth 2.0 / OpenID
Connect identity provider that turns an authorization code into an
id_token. IdentityProvider is the contract the token endpoint depends on,
so tests (and future providers) can swap the implementation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# CUSTOM EXCEPTIONS
# ---------------------------------------------------------------------------


class EnvironmentError(Exception):
    """Base exception for all identity-provider errors."""
    pass


class AuthenticationError(EnvironmentError):
    """Raised when the provider rejects the code or its id_token is not trustworthy."""
    pass


# ---------------------------------------------------------------------------
# DATA STRUCTURES
# ---------------------------------------------------------------------------


@dataclass
class OAuthTokens:
    """
    Token data returned by a provider's token endpoint.

    Only id_token matters to the relay; access_token is kept so the
    id_token's at_hash claim can be checked.
    """
    access_token: Optional[str] = None
    id_token: Optional[str] = None
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    scope: Optional[str] = None


IdentityClaims = Dict[str, Any]


# ---------------------------------------------------------------------------
# ABSTRACT BASE CLASS
# ---------------------------------------------------------------------------


class IdentityProvider(ABC):
    """
    Abstract base class for OAuth identity providers.

    The provider is responsible for:
    - Generating the authorization URL the relay redirects to
    - Exchanging authorization codes for tokens (with the client secret)
    - Verifying the returned id_token and yielding its claims
    """

    # Unique identifier for this provider (e.g., "google")
    provider_name: str = ""

    @abstractmethod
    def get_authorization_url(self, scope: str, state: str) -> str:
        """Build the provider URL the user is redirected to."""
        pass

    @abstractmethod
    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        """
        Exchange an authorization code for tokens.

        Raises:
            AuthenticationError: If the provider rejects the code
        """
        pass

    @abstractmethod
    async def verify_id_token(
        self, id_token: str, access_token: Optional[str] = None
    ) -> IdentityClaims:
        """
        Verify an id_token's signature, audience, issuer and expiry.

        Raises:
            AuthenticationError: If the token cannot be trusted
        """
        pass
