"""
Session transports - how a client carries its session to the relay.

Two strategies, chosen once when the client starts:

- WebCookieTransport: the relay keeps the token in an http-only cookie.
  The client only ever sees the user returned by /api/auth/session.
- NativeBearerTransport: the relay returns the token in the body. The
  client stores it in its secure store and sends it as a bearer header.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.client.storage import TokenStore
from app.core.config import settings
from app.core.security import decode_unverified_claims, InvalidTokenError
from app.schemas.auth import AuthUser, Platform, SessionResponse


logger = logging.getLogger("relay.client.transports")


@dataclass(frozen=True)
class SessionGrant:
    """A session the client has obtained or restored."""
    user: AuthUser
    access_token: Optional[str] = None


class SessionTransport(ABC):
    platform: Platform

    def __init__(self, http: httpx.AsyncClient, base_url: str):
        self.http = http
        self.base_url = base_url.rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @abstractmethod
    async def restore(self) -> Optional[SessionGrant]:
        """Recover a session left over from a previous run."""
        pass

    @abstractmethod
    async def exchange(self, code: str, code_verifier: Optional[str] = None) -> Optional[SessionGrant]:
        """Redeem an authorization code at the relay's token endpoint."""
        pass

    async def persist(self, grant: SessionGrant) -> None:
        """Keep a freshly exchanged session for the next start-up."""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    def auth_headers(self, headers: Optional[Dict[str, str]], access_token: Optional[str]) -> Dict[str, str]:
        return dict(headers or {})

    async def request(
        self,
        method: str,
        url: str,
        access_token: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = self.auth_headers(kwargs.pop("headers", None), access_token)
        return await self.http.request(method, url, headers=headers, **kwargs)

    async def _post_code(self, data: Dict[str, str]) -> httpx.Response:
        return await self.http.post(self.url("/api/auth/token"), data=data)


class WebCookieTransport(SessionTransport):
    platform = Platform.WEB

    async def _fetch_session(self) -> Optional[SessionGrant]:
        response = await self.http.get(self.url("/api/auth/session"))
        if not response.is_success:
            logger.info(f"No active session: {response.status_code} {response.text}")
            return None
        # Malformed bodies raise ValidationError, a ValueError
        return SessionGrant(user=SessionResponse.model_validate(response.json()).user)

    async def restore(self) -> Optional[SessionGrant]:
        return await self._fetch_session()

    async def exchange(self, code: str, code_verifier: Optional[str] = None) -> Optional[SessionGrant]:
        data = {"code": code, "platform": Platform.WEB.value}
        if code_verifier:
            data["code_verifier"] = code_verifier

        response = await self._post_code(data)
        if not response.is_success:
            logger.error(f"Token exchange failed: {response.status_code} {response.text}")
            return None

        if not response.json().get("success"):
            logger.error("Token exchange did not report success")
            return None

        # The cookie is now in our jar; ask the relay who it belongs to
        return await self._fetch_session()

    async def sign_out(self) -> None:
        try:
            await self.http.post(self.url("/api/auth/logout"))
        finally:
            self.http.cookies.delete(settings.COOKIE_NAME)


class NativeBearerTransport(SessionTransport):
    platform = Platform.NATIVE

    def __init__(self, http: httpx.AsyncClient, base_url: str, store: TokenStore):
        super().__init__(http, base_url)
        self.store = store

    @staticmethod
    def _grant_for(token: str) -> SessionGrant:
        return SessionGrant(
            user=AuthUser.from_claims(decode_unverified_claims(token)),
            access_token=token,
        )

    async def restore(self) -> Optional[SessionGrant]:
        stored = await self.store.get_token(settings.TOKEN_KEY_NAME)
        if not stored:
            logger.info("User is not authenticated, no access token found")
            return None

        try:
            claims = decode_unverified_claims(stored)
        except InvalidTokenError as e:
            logger.warning(f"Discarding unreadable stored token: {e}")
            await self.store.delete_token(settings.TOKEN_KEY_NAME)
            return None

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or exp <= time.time() or not claims.get("sub"):
            logger.info("Stored access token has expired")
            await self.store.delete_token(settings.TOKEN_KEY_NAME)
            return None

        return SessionGrant(user=AuthUser.from_claims(claims), access_token=stored)

    async def exchange(self, code: str, code_verifier: Optional[str] = None) -> Optional[SessionGrant]:
        data = {"code": code}
        if code_verifier:
            data["code_verifier"] = code_verifier

        response = await self._post_code(data)
        if not response.is_success:
            logger.error(f"Token exchange failed: {response.status_code} {response.text}")
            return None

        access_token = response.json().get("accessToken")
        if not access_token:
            logger.error("No access token received")
            return None

        return self._grant_for(access_token)

    async def persist(self, grant: SessionGrant) -> None:
        if grant.access_token:
            await self.store.save_token(settings.TOKEN_KEY_NAME, grant.access_token)

    async def sign_out(self) -> None:
        try:
            await self.store.delete_token(settings.TOKEN_KEY_NAME)
        finally:
            await self.store.delete_token(settings.REFRESH_TOKEN_KEY_NAME)

    def auth_headers(self, headers: Optional[Dict[str, str]], access_token: Optional[str]) -> Dict[str, str]:
        merged = dict(headers or {})
        if access_token:
            merged["Authorization"] = f"Bearer {access_token}"
        return merged


def create_transport(
    platform: Platform,
    http: httpx.AsyncClient,
    base_url: str,
    store: Optional[TokenStore] = None,
) -> SessionTransport:
    """Pick the transport for this client's platform."""
    if platform == Platform.WEB:
        return WebCookieTransport(http, base_url)
    if store is None:
        raise ValueError("Native clients need a TokenStore")
    return NativeBearerTransport(http, base_url, store)
