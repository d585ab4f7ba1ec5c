"""
Auth Request - the client half of the authorization-code flow.

The client never talks to Google: its discovery document points at the
relay's /api/auth/authorize and /api/auth/token endpoints, and the relay
returns the code to the client's own redirect URI.

Usage:
    discovery = DiscoveryDocument.for_relay("https://app.example.com")
    request = AuthRequest.create(redirect_uri="relayapp://")

    url = request.authorization_url(discovery)
    final_url = await launcher.open_auth_session(url, request.redirect_uri)
    result = request.parse_response(final_url)
"""

import base64
import hashlib
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

from app.environments.google.auth.schemas import PROFILE_SCOPES


@dataclass(frozen=True)
class DiscoveryDocument:
    authorization_endpoint: str
    token_endpoint: str

    @classmethod
    def for_relay(cls, base_url: str) -> "DiscoveryDocument":
        base_url = base_url.rstrip("/")
        return cls(
            authorization_endpoint=f"{base_url}/api/auth/authorize",
            token_endpoint=f"{base_url}/api/auth/token",
        )


@dataclass(frozen=True)
class AuthError:
    """Error reported by the provider (or the relay) instead of a code."""
    code: str
    description: Optional[str] = None


@dataclass(frozen=True)
class AuthSessionResult:
    """
    Outcome of an interactive sign-in.

    type is one of:
    - "success": params carries code and state
    - "error": error describes what went wrong
    - "dismiss": the user closed the browser before finishing
    """
    type: str
    params: Dict[str, str] = field(default_factory=dict)
    error: Optional[AuthError] = None


def _code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


@dataclass
class AuthRequest:
    """
    A prepared authorization request.

    state is random per request and checked when the response comes back;
    code_verifier is sent along with the code to the token endpoint.
    """
    redirect_uri: str
    client_id: str = "google"
    scopes: List[str] = field(default_factory=lambda: list(PROFILE_SCOPES))
    state: str = field(default_factory=lambda: secrets.token_urlsafe(16))
    code_verifier: Optional[str] = field(default_factory=lambda: secrets.token_urlsafe(48))

    @classmethod
    def create(cls, redirect_uri: str, **kwargs) -> "AuthRequest":
        return cls(redirect_uri=redirect_uri, **kwargs)

    def authorization_url(self, discovery: DiscoveryDocument) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "state": self.state,
            "scope": " ".join(self.scopes),
        }
        if self.code_verifier:
            params["code_challenge"] = _code_challenge(self.code_verifier)
            params["code_challenge_method"] = "S256"
        return f"{discovery.authorization_endpoint}?{urlencode(params)}"

    def parse_response(self, url: Optional[str]) -> AuthSessionResult:
        """Turn the URL the browser landed on into an AuthSessionResult."""
        if not url:
            return AuthSessionResult(type="dismiss")

        params = dict(parse_qsl(urlsplit(url).query))

        if params.get("state") != self.state:
            return AuthSessionResult(
                type="error",
                params=params,
                error=AuthError("state_mismatch", "Returned state does not match the request"),
            )

        if "error" in params:
            return AuthSessionResult(
                type="error",
                params=params,
                error=AuthError(params["error"], params.get("error_description")),
            )

        if not params.get("code"):
            return AuthSessionResult(
                type="error",
                params=params,
                error=AuthError("missing_code", "No authorization code in response"),
            )

        return AuthSessionResult(type="success", params=params)


class BrowserLauncher(ABC):
    """
    Opens the authorization URL in the platform's browser.

    Implementations return the URL the browser was redirected to once it
    reached redirect_uri, or None if the user dismissed the flow.
    """

    @abstractmethod
    async def open_auth_session(self, url: str, redirect_uri: str) -> Optional[str]:
        pass
