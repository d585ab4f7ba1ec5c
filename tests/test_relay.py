"""
Tests for the authorize and callback relay endpoints.

These tests verify:
- Platform detection from redirect_uri
- Client allow-list and configuration checks
- The provider redirect (relay-owned client id, callback and tagged state)
- Callback routing back to the app scheme or the web origin
- RelayState encoding
"""

from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient

from app.schemas.auth import Platform
from app.services.relay_state import RelayState, RelayStateError


def _query(location: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlsplit(location).query).items()}


class TestAuthorize:
    """Tests for GET /api/auth/authorize."""

    def test_native_redirect_tags_state_mobile(self, client: TestClient):
        """Should redirect to Google with state prefixed by 'mobile|'."""
        response = client.get(
            "/api/auth/authorize",
            params={"client_id": "google", "redirect_uri": "relayapp://", "state": "abc123"},
        )

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert _query(location)["state"] == "mobile|abc123"

    def test_web_redirect_tags_state_web(self, client: TestClient):
        """Should redirect to Google with state prefixed by 'web|'."""
        response = client.get(
            "/api/auth/authorize",
            params={"client_id": "google", "redirect_uri": "http://testserver", "state": "abc123"},
        )

        assert response.status_code == 302
        assert _query(response.headers["location"])["state"] == "web|abc123"

    def test_uses_relay_credentials_and_callback(self, client: TestClient):
        """Should send the relay's client id and callback, not the client's."""
        response = client.get(
            "/api/auth/authorize",
            params={"client_id": "google", "redirect_uri": "relayapp://", "state": "s"},
        )

        params = _query(response.headers["location"])
        assert params["client_id"] == "test-client-id"
        assert params["redirect_uri"] == "http://testserver/api/auth/callback"
        assert params["response_type"] == "code"
        assert params["prompt"] == "select_account"

    def test_default_scope(self, client: TestClient):
        """Should fall back to the default scope when none is requested."""
        response = client.get(
            "/api/auth/authorize",
            params={"client_id": "google", "redirect_uri": "relayapp://", "state": "s"},
        )

        assert _query(response.headers["location"])["scope"] == "openid profile email"

    def test_requested_scope_is_forwarded(self, client: TestClient):
        """Should forward the scope the client asked for."""
        response = client.get(
            "/api/auth/authorize",
            params={
                "client_id": "google",
                "redirect_uri": "relayapp://",
                "state": "s",
                "scope": "openid email",
            },
        )

        assert _query(response.headers["location"])["scope"] == "openid email"

    @pytest.mark.parametrize(
        "redirect_uri",
        ["https://evil.example.com", "relayapp://callback", "http://testserver/", ""],
    )
    def test_rejects_unknown_redirect(self, client: TestClient, redirect_uri: str):
        """Should return 400 and not redirect for any other redirect_uri."""
        response = client.get(
            "/api/auth/authorize",
            params={"client_id": "google", "redirect_uri": redirect_uri, "state": "s"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid redirect_uri"}
        assert "location" not in response.headers

    def test_rejects_unsupported_client(self, client: TestClient):
        """Should return 400 for a provider outside the allow-list."""
        response = client.get(
            "/api/auth/authorize",
            params={"client_id": "apple", "redirect_uri": "relayapp://", "state": "s"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Unsupported client"}

    def test_missing_client_id_config(self, client: TestClient, relay_settings, monkeypatch):
        """Should return 500 when the relay has no Google client id."""
        monkeypatch.setattr(relay_settings, "GOOGLE_CLIENT_ID", "")

        response = client.get(
            "/api/auth/authorize",
            params={"client_id": "google", "redirect_uri": "relayapp://", "state": "s"},
        )

        assert response.status_code == 500
        assert "GOOGLE_CLIENT_ID" in response.json()["error"]


class TestCallback:
    """Tests for GET /api/auth/callback."""

    def test_web_state_redirects_to_base_url(self, client: TestClient):
        """Should send code and original state to the web origin."""
        response = client.get("/api/auth/callback", params={"code": "4/abc", "state": "web|xyz"})

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("http://testserver?")
        assert _query(location) == {"code": "4/abc", "state": "xyz"}

    def test_mobile_state_redirects_to_app_scheme(self, client: TestClient):
        """Should send code and original state to the native deep link."""
        response = client.get("/api/auth/callback", params={"code": "4/abc", "state": "mobile|xyz"})

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("relayapp://?")
        assert _query(location) == {"code": "4/abc", "state": "xyz"}

    def test_state_containing_separator_survives(self, client: TestClient):
        """Should only split on the first separator."""
        response = client.get("/api/auth/callback", params={"code": "c", "state": "web|a|b"})

        assert _query(response.headers["location"])["state"] == "a|b"

    def test_missing_state(self, client: TestClient):
        """Should return 400 when state is absent."""
        response = client.get("/api/auth/callback", params={"code": "c"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid state parameter"}

    @pytest.mark.parametrize("state", ["desktop|xyz", "xyz", "|xyz"])
    def test_unknown_platform_fails_closed(self, client: TestClient, state: str):
        """Should reject states without a known platform tag."""
        response = client.get("/api/auth/callback", params={"code": "c", "state": state})

        assert response.status_code == 400
        assert "location" not in response.headers

    def test_forwards_provider_error(self, client: TestClient):
        """Should pass a provider error through to the client surface."""
        response = client.get(
            "/api/auth/callback",
            params={"state": "mobile|xyz", "error": "access_denied"},
        )

        params = _query(response.headers["location"])
        assert params["error"] == "access_denied"
        assert params["state"] == "xyz"


class TestRelayState:
    """Tests for RelayState encoding."""

    @pytest.mark.parametrize(
        "platform,state",
        [
            (Platform.WEB, "xyz"),
            (Platform.NATIVE, "xyz"),
            (Platform.WEB, ""),
            (Platform.NATIVE, "a|b|c"),
        ],
    )
    def test_decode_recovers_platform_and_state(self, platform: Platform, state: str):
        """Should recover exactly what was encoded."""
        decoded = RelayState.decode(RelayState(platform, state).encode())

        assert decoded.platform == platform
        assert decoded.state == state

    def test_native_uses_mobile_tag(self):
        """Should tag native states as 'mobile' on the wire."""
        assert RelayState(Platform.NATIVE, "s").encode() == "mobile|s"

    def test_decode_rejects_missing_separator(self):
        """Should raise when there is no platform tag."""
        with pytest.raises(RelayStateError):
            RelayState.decode("web")
