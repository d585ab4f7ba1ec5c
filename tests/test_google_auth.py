"""
Tests for the Google OAuth client.

These tests verify:
- Authorization URL parameters
- Code exchange against a mocked token endpoint
- id_token verification against a mocked JWKS endpoint
"""

import json
import time
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from app.core.config import settings
from app.environments.base import AuthenticationError
from app.environments.google import GoogleAuthClient


def _rsa_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="module")
def google_key() -> str:
    return _rsa_pem()


@pytest.fixture(scope="module")
def other_key() -> str:
    return _rsa_pem()


@pytest.fixture
def jwks(google_key) -> dict:
    public = jwk.construct(google_key, "RS256").public_key().to_dict()
    public["kid"] = "google-test-key"
    return {"keys": [public]}


def _id_token(key: str, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": "test-client-id",
        "sub": "109876543210987654321",
        "email": "ana@example.com",
        "email_verified": True,
        "name": "Ana Diaz",
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    return jwt.encode(claims, key, algorithm="RS256", headers={"kid": "google-test-key"})


def _client_with(handler) -> GoogleAuthClient:
    return GoogleAuthClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _google(jwks: dict, token_status: int = 200, token_body: dict | None = None):
    """Mock handler for Google's token and certs endpoints."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if str(request.url) == settings.GOOGLE_CERTS_URL:
            return httpx.Response(200, json=jwks)
        if str(request.url) == settings.GOOGLE_TOKEN_URL:
            return httpx.Response(token_status, json=token_body or {})
        return httpx.Response(404)

    handler.requests = requests
    return handler


class TestAuthorizationUrl:
    """Tests for get_authorization_url."""

    def test_builds_google_url(self):
        """Should include relay credentials, scope, state and prompt."""
        url = GoogleAuthClient().get_authorization_url(scope="openid email", state="web|abc")

        parts = urlsplit(url)
        params = {k: v[0] for k, v in parse_qs(parts.query).items()}
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == settings.GOOGLE_AUTH_URL
        assert params == {
            "client_id": "test-client-id",
            "redirect_uri": "http://testserver/api/auth/callback",
            "response_type": "code",
            "scope": "openid email",
            "state": "web|abc",
            "prompt": "select_account",
        }


class TestExchangeCode:
    """Tests for exchange_code_for_tokens."""

    @pytest.mark.asyncio
    async def test_success(self, jwks):
        """Should post the confidential form and return the id_token."""
        handler = _google(jwks, token_body={"access_token": "at", "id_token": "idt", "expires_in": 3599})
        client = _client_with(handler)

        tokens = await client.exchange_code_for_tokens("4/code")

        assert tokens.id_token == "idt"
        assert tokens.access_token == "at"
        form = parse_qs(handler.requests[0].content.decode())
        assert form["code"] == ["4/code"]
        assert form["client_secret"] == ["test-client-secret"]
        assert form["grant_type"] == ["authorization_code"]
        assert form["redirect_uri"] == ["http://testserver/api/auth/callback"]

    @pytest.mark.asyncio
    async def test_provider_rejects(self, jwks):
        """Should raise AuthenticationError on a non-200 response."""
        handler = _google(jwks, token_status=400, token_body={"error": "invalid_grant"})

        with pytest.raises(AuthenticationError, match="invalid_grant"):
            await _client_with(handler).exchange_code_for_tokens("4/code")

    @pytest.mark.asyncio
    async def test_missing_id_token(self, jwks):
        """Should raise AuthenticationError when no id_token is returned."""
        handler = _google(jwks, token_body={"access_token": "at"})

        with pytest.raises(AuthenticationError):
            await _client_with(handler).exchange_code_for_tokens("4/code")

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        """Should raise AuthenticationError when the body isn't a JSON object."""
        def handler(request):
            return httpx.Response(200, json=["not", "an", "object"])

        with pytest.raises(AuthenticationError, match="Malformed token response"):
            await _client_with(handler).exchange_code_for_tokens("4/code")

    @pytest.mark.asyncio
    async def test_network_error(self):
        """Should wrap transport failures in AuthenticationError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthenticationError, match="Network error"):
            await _client_with(handler).exchange_code_for_tokens("4/code")


class TestVerifyIdToken:
    """Tests for verify_id_token."""

    @pytest.mark.asyncio
    async def test_valid_token(self, jwks, google_key):
        """Should return the claims of a correctly signed token."""
        client = _client_with(_google(jwks))

        claims = await client.verify_id_token(_id_token(google_key))

        assert claims["sub"] == "109876543210987654321"
        assert claims["email"] == "ana@example.com"

    @pytest.mark.asyncio
    async def test_signed_by_other_key(self, jwks, other_key):
        """Should reject a token not signed by Google's keys."""
        client = _client_with(_google(jwks))

        with pytest.raises(AuthenticationError):
            await client.verify_id_token(_id_token(other_key))

    @pytest.mark.asyncio
    async def test_wrong_audience(self, jwks, google_key):
        """Should reject a token issued to another client."""
        client = _client_with(_google(jwks))

        with pytest.raises(AuthenticationError):
            await client.verify_id_token(_id_token(google_key, aud="someone-else"))

    @pytest.mark.asyncio
    async def test_wrong_issuer(self, jwks, google_key):
        """Should reject a token from another issuer."""
        client = _client_with(_google(jwks))

        with pytest.raises(AuthenticationError):
            await client.verify_id_token(_id_token(google_key, iss="https://evil.example.com"))

    @pytest.mark.asyncio
    async def test_expired(self, jwks, google_key):
        """Should reject an expired id_token."""
        client = _client_with(_google(jwks))
        past = int(time.time()) - 7200

        with pytest.raises(AuthenticationError):
            await client.verify_id_token(_id_token(google_key, iat=past, exp=past + 3600))

    @pytest.mark.asyncio
    async def test_unsigned_payload(self, jwks):
        """Should reject a token that is merely base64 encoded JSON."""
        client = _client_with(_google(jwks))
        forged = jwt.encode({"sub": "1", "aud": "test-client-id"}, "secret", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            await client.verify_id_token(forged)

    @pytest.mark.asyncio
    async def test_certs_unavailable(self, google_key):
        """Should fail closed when the key set can't be fetched."""
        client = _client_with(lambda request: httpx.Response(503, content=json.dumps({})))

        with pytest.raises(AuthenticationError):
            await client.verify_id_token(_id_token(google_key))
