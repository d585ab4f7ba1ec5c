"""
Session Controller - client-side owner of the sign-in state.

One SessionController per client instance. It is the only writer of
ClientSessionState; UI code reads `controller.state` or subscribes to
changes.

State transitions:
==================
- restore():         start-up, adopt a leftover session if still valid
- sign_in():         open the relay's authorize URL in the browser
- handle_response(): redeem the returned code (or record the error)
- sign_out():        drop the session locally, tell the relay if web

Every sign_in/sign_out starts a new flow. Async steps remember the flow
they belong to and discard their result if a newer flow has started, so a
late token response can't resurrect a session the user just ended.

There is no token refresh: a 401 from fetch_with_auth is final and the
user has to sign in again.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional

import httpx

from app.client.auth_request import (
    AuthError,
    AuthRequest,
    AuthSessionResult,
    BrowserLauncher,
    DiscoveryDocument,
)
from app.client.storage import TokenStore, TokenStoreError
from app.client.transports import SessionTransport, create_transport
from app.core.config import settings
from app.core.security import SessionTokenError
from app.schemas.auth import AuthUser, Platform


logger = logging.getLogger("relay.client.session")

# Failures a flow step recovers from by staying (or becoming) signed out
FLOW_ERRORS = (httpx.HTTPError, SessionTokenError, TokenStoreError, ValueError, KeyError)


@dataclass(frozen=True)
class ClientSessionState:
    is_loading: bool = False
    user: Optional[AuthUser] = None
    error: Optional[AuthError] = None
    # Native only; web sessions live in an http-only cookie
    access_token: Optional[str] = None


Listener = Callable[[ClientSessionState], None]


class SessionController:
    """
    Orchestrates sign-in, restore, authenticated fetch and sign-out.

    Example:
        controller = SessionController.create(
            platform=Platform.NATIVE,
            base_url="https://app.example.com",
            launcher=my_launcher,
            store=keychain_store,
        )
        await controller.restore()
        if controller.state.user is None:
            await controller.sign_in()
        response = await controller.fetch_with_auth(
            "https://app.example.com/api/protected/data"
        )
    """

    def __init__(
        self,
        transport: SessionTransport,
        launcher: Optional[BrowserLauncher] = None,
        auth_request: Optional[AuthRequest] = None,
        discovery: Optional[DiscoveryDocument] = None,
    ):
        self.transport = transport
        self.launcher = launcher
        self.auth_request = auth_request
        self.discovery = discovery or DiscoveryDocument.for_relay(transport.base_url)
        self._state = ClientSessionState()
        self._flow_id = 0
        self._listeners: List[Listener] = []

    @classmethod
    def create(
        cls,
        platform: Platform,
        base_url: str,
        launcher: Optional[BrowserLauncher] = None,
        store: Optional[TokenStore] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> "SessionController":
        """Build a controller with the transport and auth request for `platform`."""
        transport = create_transport(platform, http or httpx.AsyncClient(), base_url, store)
        redirect_uri = settings.BASE_URL if platform == Platform.WEB else settings.APP_SCHEME
        return cls(
            transport,
            launcher=launcher,
            auth_request=AuthRequest.create(redirect_uri=redirect_uri),
        )

    # -------------------------------------------------------------------------
    # STATE
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ClientSessionState:
        return self._state

    @property
    def platform(self) -> Platform:
        return self.transport.platform

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` on every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    def _new_flow(self) -> int:
        self._flow_id += 1
        return self._flow_id

    def _is_current(self, flow: int) -> bool:
        return flow == self._flow_id

    # -------------------------------------------------------------------------
    # RESTORE
    # -------------------------------------------------------------------------

    async def restore(self) -> None:
        """Adopt a session from a previous run, if one is still valid."""
        flow = self._flow_id
        self._set(is_loading=True)
        try:
            grant = await self.transport.restore()
            if not self._is_current(flow):
                logger.info("Discarding restored session, a newer flow started")
                return
            if grant is not None:
                self._set(user=grant.user, access_token=grant.access_token)
        except FLOW_ERRORS as e:
            logger.error(f"Error restoring session: {e}")
        finally:
            if self._is_current(flow):
                self._set(is_loading=False)

    # -------------------------------------------------------------------------
    # SIGN IN
    # -------------------------------------------------------------------------

    async def sign_in(self) -> None:
        """Run the interactive browser flow and redeem its result."""
        if self.auth_request is None or self.launcher is None:
            logger.warning("Auth request is not initialized")
            return

        flow = self._new_flow()
        url = self.auth_request.authorization_url(self.discovery)

        try:
            redirect = await self.launcher.open_auth_session(url, self.auth_request.redirect_uri)
        except FLOW_ERRORS as e:
            logger.error(f"Error during sign-in: {e}")
            if self._is_current(flow):
                self._set(error=AuthError("launch_failed", str(e)), is_loading=False)
            return

        await self._handle(self.auth_request.parse_response(redirect), flow)

    async def handle_response(self, result: AuthSessionResult) -> None:
        """Redeem a result delivered outside sign_in (e.g. a web page reload)."""
        await self._handle(result, self._flow_id)

    async def _handle(self, result: AuthSessionResult, flow: int) -> None:
        if not self._is_current(flow):
            logger.info("Discarding stale auth response")
            return

        if result.type == "error":
            logger.warning(f"Sign-in failed: {result.error}")
            # Signed out means signed out everywhere: drop any stored session too
            try:
                await self.transport.sign_out()
            except FLOW_ERRORS as e:
                logger.error(f"Error clearing session after failed sign-in: {e}")
            if self._is_current(flow):
                self._set(error=result.error, user=None, access_token=None, is_loading=False)
            return

        if result.type != "success":
            logger.info(f"Sign-in ended without a code: {result.type}")
            self._set(is_loading=False)
            return

        self._set(is_loading=True, error=None)
        try:
            code = result.params["code"]
            verifier = self.auth_request.code_verifier if self.auth_request else None
            grant = await self.transport.exchange(code, verifier)

            if not self._is_current(flow):
                logger.info("Discarding token response, a newer flow started")
                return
            if grant is None:
                return

            await self.transport.persist(grant)
            if self._is_current(flow):
                self._set(user=grant.user, access_token=grant.access_token)
        except FLOW_ERRORS as e:
            logger.error(f"Error exchanging code for tokens: {e}")
        finally:
            if self._is_current(flow):
                self._set(is_loading=False)

    # -------------------------------------------------------------------------
    # SIGN OUT
    # -------------------------------------------------------------------------

    async def sign_out(self) -> None:
        """End the session. Local state is cleared even if the relay can't be reached."""
        self._new_flow()
        try:
            await self.transport.sign_out()
        except FLOW_ERRORS as e:
            logger.error(f"Error during logout: {e}")
        finally:
            self._set(user=None, access_token=None, is_loading=False)

    # -------------------------------------------------------------------------
    # AUTHENTICATED FETCH
    # -------------------------------------------------------------------------

    async def fetch_with_auth(self, url: str, method: str = "GET", **kwargs: Any) -> httpx.Response:
        """
        Make a request carrying the session (cookie for web, bearer for native).

        A 401 is returned as-is; there is no refresh to retry with.
        """
        return await self.transport.request(
            method, url, access_token=self._state.access_token, **kwargs
        )
