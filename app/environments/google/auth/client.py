"""
Google OAuth Client - Handles the OAuth 2.0 / OpenID Connect flow with Google.

Key Features:
=============
1. Authorization URL generation (relay-owned client id and callback)
2. Code-to-token exchange using the confidential client secret
3. id_token verification against Google's published signing keys

The client secret never leaves this module: it is sent to Google's token
endpoint and nowhere else.

References:
===========
- OpenID Connect: https://developers.google.com/identity/openid-connect/openid-connect
- Token endpoint: https://oauth2.googleapis.com/token
- Signing keys: https://www.googleapis.com/oauth2/v3/certs
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from jose import JWTError, jwt
from pydantic import ValidationError

from app.core.config import settings
from app.environments.base import (
    AuthenticationError,
    IdentityClaims,
    IdentityProvider,
    OAuthTokens,
)
from app.environments.google.auth.schemas import (
    GoogleIdentityClaims,
    GoogleTokenResponse,
)


logger = logging.getLogger("relay.environments.google.auth")


class GoogleAuthClient(IdentityProvider):
    """
    Google OAuth 2.0 Client implementation.

    Example Usage:
        client = GoogleAuthClient()

        # Step 1: Generate auth URL
        auth_url = client.get_authorization_url(
            scope="openid profile email",
            state="web|random-client-state",
        )

        # Step 2: Exchange the code posted by the client
        tokens = await client.exchange_code_for_tokens(code="4/0Ab...")

        # Step 3: Verify the id_token before trusting any claim in it
        claims = await client.verify_id_token(tokens.id_token, tokens.access_token)
    """

    provider_name = "google"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the Google OAuth client.

        Args:
            client_id: Google OAuth Client ID (defaults to settings)
            client_secret: Google OAuth Client Secret (defaults to settings)
            redirect_uri: Relay callback URL (defaults to settings)
            http_client: Optional shared httpx client (mainly for tests)
        """
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = redirect_uri or settings.GOOGLE_REDIRECT_URI
        self._http_client = http_client

        if not self.client_id or not self.client_secret:
            logger.warning(
                "Google OAuth not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET in environment variables."
            )

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=settings.UPSTREAM_TIMEOUT)

    async def _post_form(self, url: str, data: Dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, data=data)
        async with self._client() as client:
            return await client.post(url, data=data)

    async def _get(self, url: str) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(url)
        async with self._client() as client:
            return await client.get(url)

    # -------------------------------------------------------------------------
    # AUTHORIZATION URL
    # -------------------------------------------------------------------------

    def get_authorization_url(
        self,
        scope: str,
        state: str,
        prompt: Optional[str] = None,
    ) -> str:
        """
        Generate the Google OAuth authorization URL.

        The redirect_uri is always the relay's own callback, never the one
        the client asked for; the client's target is encoded in `state`.

        Args:
            scope: Space-separated scopes (e.g. "openid profile email")
            state: Platform-tagged relay state
            prompt: Google prompt hint (defaults to settings.OAUTH_PROMPT)

        Returns:
            Full authorization URL to redirect the user to
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": scope,
            "state": state,
            "prompt": prompt or settings.OAUTH_PROMPT,
        }

        auth_url = f"{settings.GOOGLE_AUTH_URL}?{urlencode(params)}"

        logger.info("Generated Google auth URL", extra={"scope": scope})

        return auth_url

    # -------------------------------------------------------------------------
    # TOKEN EXCHANGE
    # -------------------------------------------------------------------------

    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        """
        Exchange an authorization code for Google tokens.

        Args:
            code: Authorization code relayed back to the client

        Returns:
            OAuthTokens carrying the id_token

        Raises:
            AuthenticationError: Network failure, non-200 response, or no id_token
        """
        token_data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }

        logger.info("Exchanging authorization code for tokens")

        try:
            response = await self._post_form(settings.GOOGLE_TOKEN_URL, token_data)
        except httpx.RequestError as e:
            logger.error(f"Network error during token exchange: {e}")
            raise AuthenticationError(f"Network error: {e}")

        if response.status_code != 200:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            error_msg = error_data.get("error_description") or error_data.get(
                "error", response.text
            )
            logger.error(f"Token exchange failed: {error_msg}")
            raise AuthenticationError(f"Token exchange failed: {error_msg}")

        try:
            token_response = GoogleTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AuthenticationError(f"Malformed token response: {e}")

        if not token_response.id_token:
            logger.error("Token response did not include an id_token")
            raise AuthenticationError("No id_token in token response")

        logger.info(
            "Successfully obtained Google tokens",
            extra={
                "expires_in": token_response.expires_in,
                "scopes": token_response.get_scopes_list(),
            },
        )

        return OAuthTokens(
            access_token=token_response.access_token,
            id_token=token_response.id_token,
            token_type=token_response.token_type,
            expires_in=token_response.expires_in,
            scope=token_response.scope,
        )

    # -------------------------------------------------------------------------
    # ID TOKEN VERIFICATION
    # -------------------------------------------------------------------------

    async def get_signing_keys(self) -> Dict[str, Any]:
        """
        Fetch Google's JSON Web Key Set.

        Raises:
            AuthenticationError: If the key set can't be retrieved
        """
        try:
            response = await self._get(settings.GOOGLE_CERTS_URL)
        except httpx.RequestError as e:
            logger.error(f"Network error fetching signing keys: {e}")
            raise AuthenticationError(f"Network error: {e}")

        if response.status_code != 200:
            logger.error(f"Failed to fetch signing keys: {response.status_code}")
            raise AuthenticationError("Failed to fetch provider signing keys")

        try:
            jwks = response.json()
        except ValueError as e:
            raise AuthenticationError(f"Malformed key set: {e}")

        if not isinstance(jwks, dict) or not jwks.get("keys"):
            raise AuthenticationError("Provider key set is empty")
        return jwks

    async def verify_id_token(
        self, id_token: str, access_token: Optional[str] = None
    ) -> IdentityClaims:
        """
        Verify a Google id_token and return its claims.

        Checks, via python-jose:
        - RS256 signature against Google's current signing keys
        - aud == our client id
        - iss is one of Google's issuers
        - exp is in the future
        - at_hash matches the access token, when both are present

        Raises:
            AuthenticationError: If any check fails
        """
        jwks = await self.get_signing_keys()

        try:
            payload = jwt.decode(
                id_token,
                jwks,
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=settings.GOOGLE_ISSUERS,
                access_token=access_token,
            )
        except JWTError as e:
            logger.warning(f"Rejected Google id_token: {e}")
            raise AuthenticationError(f"Invalid id_token: {e}")

        try:
            claims = GoogleIdentityClaims(**payload)
        except ValidationError as e:
            raise AuthenticationError(f"id_token is missing required claims: {e}")

        logger.info("Verified Google id_token", extra={"sub": claims.sub})

        return claims.model_dump(exclude_none=True)
