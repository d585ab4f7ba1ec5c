"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- Relay settings pointed at the test server
- A fake identity provider (no calls to Google)
- Test client (FastAPI TestClient)
- Session token helpers
"""

import time
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.security import create_session_token
from app.deps import get_identity_provider
from app.environments.base import AuthenticationError, OAuthTokens
from app.environments.google import GoogleAuthClient
from app.main import app


GOOGLE_SUB = "109876543210987654321"


# ---------------------------------------------------------------------------
# SETTINGS
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def relay_settings(monkeypatch):
    """Point the relay at the TestClient host with known secrets."""
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(settings, "BASE_URL", "http://testserver")
    monkeypatch.setattr(settings, "APP_SCHEME", "relayapp://")
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "test-client-id")
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setattr(settings, "GOOGLE_REDIRECT_URI", "http://testserver/api/auth/callback")
    monkeypatch.setattr(settings, "SECRET_KEY", "test-secret-key")
    monkeypatch.setattr(settings, "SESSION_TOKEN_EXPIRE_SECONDS", 60)
    monkeypatch.setattr(settings, "COOKIE_MAX_AGE", 60)
    return settings


# ---------------------------------------------------------------------------
# IDENTITY PROVIDER
# ---------------------------------------------------------------------------

@pytest.fixture
def google_claims() -> dict:
    """Claims of a verified Google id_token."""
    now = int(time.time())
    return {
        "iss": "https://accounts.google.com",
        "aud": "test-client-id",
        "azp": "test-client-id",
        "sub": GOOGLE_SUB,
        "email": "ana@example.com",
        "email_verified": True,
        "name": "Ana Diaz",
        "given_name": "Ana",
        "family_name": "Diaz",
        "picture": "https://lh3.googleusercontent.com/a/ana",
        "locale": "es",
        "iat": now,
        "exp": now + 3600,
    }


class FakeGoogleAuthClient(GoogleAuthClient):
    """
    GoogleAuthClient with the network calls replaced.

    Authorization URLs are built by the real client; code "bad" is
    rejected by the "provider" and code "forged" yields an id_token that
    fails verification.
    """

    def __init__(self, claims: dict):
        super().__init__()
        self.claims = claims
        self.exchanged_codes = []

    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        self.exchanged_codes.append(code)
        if code == "bad":
            raise AuthenticationError("Token exchange failed: invalid_grant")
        return OAuthTokens(access_token="google-access-token", id_token=f"id-token-for-{code}")

    async def verify_id_token(self, id_token: str, access_token: Optional[str] = None) -> dict:
        if id_token == "id-token-for-forged":
            raise AuthenticationError("Invalid id_token: Signature verification failed.")
        return dict(self.claims)


@pytest.fixture
def fake_provider(google_claims) -> FakeGoogleAuthClient:
    return FakeGoogleAuthClient(google_claims)


@pytest.fixture
def client(fake_provider) -> Generator[TestClient, None, None]:
    """
    Create a test client with the fake identity provider.

    Redirects are not followed so tests can inspect Location headers.
    """
    app.dependency_overrides[get_identity_provider] = lambda: fake_provider

    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# SESSION TOKEN FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def session_token(google_claims) -> str:
    """A valid session token for the test user."""
    token, _, _ = create_session_token(
        {"email": google_claims["email"], "name": google_claims["name"], "provider": "google"},
        subject=GOOGLE_SUB,
    )
    return token


@pytest.fixture
def expired_session_token(google_claims) -> str:
    """A correctly signed session token that expired 90 seconds ago."""
    token, _, _ = create_session_token(
        {"email": google_claims["email"], "name": google_claims["name"]},
        subject=GOOGLE_SUB,
        now=int(time.time()) - 100,
        lifetime=10,
    )
    return token


@pytest.fixture
def auth_headers(session_token: str) -> dict:
    """Authorization header carrying the test user's session token."""
    return {"Authorization": f"Bearer {session_token}"}
