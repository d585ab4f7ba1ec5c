"""
Auth Router - the OAuth relay and session endpoints.

Endpoints:
==========
- GET  /api/auth/authorize → Validate client, tag state, redirect to Google
- GET  /api/auth/callback  → Untag state, redirect code back to app or web
- POST /api/auth/token     → Exchange code, mint session token, deliver it
- GET  /api/auth/session   → Return the user behind the current session
- POST /api/auth/logout    → Clear the session cookie

OAuth Flow:
===========
1. Client opens /api/auth/authorize with its redirect_uri and state
2. Relay redirects to Google with its own callback and "<platform>|<state>"
3. Google redirects to /api/auth/callback with code and that state
4. Relay redirects to the app scheme (mobile) or BASE_URL (web) with code
5. Client posts the code to /api/auth/token
6. Relay exchanges it with its client secret and verifies the id_token
7. Session token is returned in the body (native) or as a cookie (web)

No server-side session storage: everything lives in the signed token.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Query, status
from fastapi.responses import JSONResponse, RedirectResponse

from app.core.config import settings
from app.core.errors import (
    ConfigMissing,
    InvalidRedirect,
    InvalidState,
    MissingCode,
    MissingState,
    UnsupportedClient,
    UpstreamExchangeFailed,
)
from app.core.security import create_session_token
from app.deps import get_current_user, get_identity_provider
from app.environments.base import AuthenticationError, IdentityProvider
from app.environments.google.auth.schemas import SESSION_CLAIM_EXCLUSIONS
from app.schemas.auth import (
    AuthUser,
    NativeTokenResponse,
    Platform,
    SessionResponse,
    WebTokenResponse,
)
from app.services.relay_state import RelayState, RelayStateError


logger = logging.getLogger("relay.routers.auth")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/api/auth", tags=["auth"])


def _platform_for_redirect(redirect_uri: Optional[str]) -> Platform:
    """Map a client redirect_uri onto the platform that owns it."""
    if redirect_uri == settings.APP_SCHEME:
        return Platform.NATIVE
    if redirect_uri == settings.BASE_URL:
        return Platform.WEB
    raise InvalidRedirect()


def _client_url(platform: Platform, params: dict) -> str:
    target = settings.APP_SCHEME if platform == Platform.NATIVE else settings.BASE_URL
    return f"{target}?{urlencode(params)}"


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------


@router.get("/authorize")
async def authorize(
    client_id: Optional[str] = Query(None, description="Internal provider id, e.g. 'google'"),
    redirect_uri: Optional[str] = Query(None, description="App scheme or web base URL"),
    state: Optional[str] = Query(None, description="Opaque client state"),
    scope: Optional[str] = Query(None, description="Requested scopes"),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """
    Relay the authorization request to Google.

    Returns:
        302 to Google's consent screen

    Raises:
        500 ConfigMissing: GOOGLE_CLIENT_ID not set
        400 InvalidRedirect: redirect_uri is neither the app scheme nor BASE_URL
        400 UnsupportedClient: client_id is not an allowed provider
    """
    if not settings.GOOGLE_CLIENT_ID:
        logger.error("Google OAuth not configured - missing GOOGLE_CLIENT_ID")
        raise ConfigMissing("GOOGLE_CLIENT_ID is not set")

    platform = _platform_for_redirect(redirect_uri)

    if client_id not in settings.SUPPORTED_CLIENTS:
        logger.warning(f"Rejected authorize request for client {client_id!r}")
        raise UnsupportedClient()

    relay_state = RelayState(platform=platform, state=state or "")

    auth_url = provider.get_authorization_url(
        scope=scope or settings.DEFAULT_SCOPE,
        state=relay_state.encode(),
    )

    logger.info(f"Relaying {platform.value} authorization request to {client_id}")

    return RedirectResponse(url=auth_url, status_code=status.HTTP_302_FOUND)


@router.get("/callback")
async def callback(
    code: Optional[str] = Query(None, description="Authorization code from Google"),
    state: Optional[str] = Query(None, description="Relay state sent with /authorize"),
    error: Optional[str] = Query(None, description="Error from Google"),
    error_description: Optional[str] = Query(None, description="Error details"),
):
    """
    Send the provider's answer back to the client surface that asked for it.

    No token material is handled here; the code goes to the client, which
    redeems it at /api/auth/token.

    Raises:
        400 MissingState: state absent
        400 InvalidState: state does not carry a known platform tag
    """
    if not state:
        logger.warning("Missing state in OAuth callback")
        raise MissingState()

    try:
        relay_state = RelayState.decode(state)
    except RelayStateError as e:
        logger.warning(f"Rejected OAuth callback state: {e}")
        raise InvalidState()

    params = {"code": code or "", "state": relay_state.state}
    if error:
        logger.warning(f"Google OAuth error: {error} - {error_description}")
        params["error"] = error
        if error_description:
            params["error_description"] = error_description

    return RedirectResponse(
        url=_client_url(relay_state.platform, params),
        status_code=status.HTTP_302_FOUND,
    )


@router.post("/token")
async def token(
    code: str = Form(""),
    platform: str = Form(Platform.NATIVE.value),
    code_verifier: Optional[str] = Form(None),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """
    Exchange an authorization code for a session token.

    code_verifier is accepted for clients that always send one, but the
    relay authenticates to Google with its client secret, so it is unused.

    Returns:
        web:    {success, issuedAt, expiresAt} + http-only session cookie
        native: {accessToken}

    Raises:
        400 MissingCode: code empty
        400 UpstreamExchangeFailed: Google rejected the code or the id_token
    """
    if not code:
        raise MissingCode()

    if not settings.GOOGLE_CLIENT_SECRET:
        logger.error("Google OAuth not configured - missing GOOGLE_CLIENT_SECRET")
        raise ConfigMissing("GOOGLE_CLIENT_SECRET is not set")

    try:
        tokens = await provider.exchange_code_for_tokens(code)
        if not tokens.id_token:
            raise AuthenticationError("No id_token in token response")
        identity = await provider.verify_id_token(tokens.id_token, tokens.access_token)
    except AuthenticationError as e:
        logger.warning(f"Code exchange failed: {e}")
        raise UpstreamExchangeFailed()

    claims = {k: v for k, v in identity.items() if k not in SESSION_CLAIM_EXCLUSIONS}
    claims["provider"] = provider.provider_name

    session_token, issued_at, expires_at = create_session_token(
        claims, subject=str(identity["sub"])
    )

    if platform == Platform.WEB.value:
        body = WebTokenResponse(
            issued_at=issued_at,
            expires_at=issued_at + settings.COOKIE_MAX_AGE,
        )
        response = JSONResponse(body.model_dump(by_alias=True))
        response.set_cookie(
            key=settings.COOKIE_NAME,
            value=session_token,
            max_age=settings.COOKIE_MAX_AGE,
            path=settings.COOKIE_PATH,
            httponly=settings.COOKIE_HTTPONLY,
            secure=settings.cookie_secure,
            samesite=settings.COOKIE_SAMESITE,
        )
        logger.info(f"Issued web session for {identity['sub']}", extra={"exp": expires_at})
        return response

    logger.info(f"Issued native session for {identity['sub']}", extra={"exp": expires_at})
    return NativeTokenResponse(access_token=session_token).model_dump(by_alias=True)


@router.get("/session", response_model=SessionResponse)
async def session(user: AuthUser = Depends(get_current_user)):
    """
    Return the user behind the current session token.

    Web clients can't read their http-only cookie, so this is how they
    learn who is signed in.
    """
    return SessionResponse(user=user)


@router.post("/logout")
async def logout():
    """Clear the session cookie. The token itself stays valid until exp."""
    response = JSONResponse({"success": True})
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        path=settings.COOKIE_PATH,
        httponly=settings.COOKIE_HTTPONLY,
        secure=settings.cookie_secure,
        samesite=settings.COOKIE_SAMESITE,
    )
    return response
