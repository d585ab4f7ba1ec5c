"""
Configuration module - centralized settings for the OAuth relay.
Uses pydantic-settings to load values from environment variables and .env file.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic-settings automatically:
    1. Reads from environment variables (highest priority)
    2. Falls back to .env file values
    3. Uses default values if neither exists

    To override in production, set environment variables:
        export GOOGLE_CLIENT_SECRET=...
        export SECRET_KEY=your-super-secret-random-string
    """

    # ---------------------------------------------------------------------------
    # PYDANTIC SETTINGS CONFIGURATION
    # ---------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # ---------------------------------------------------------------------------
    APP_NAME: str = "OAuth Relay"

    # ENVIRONMENT: "development" or "production"
    # - Session cookies are only marked Secure in production
    ENVIRONMENT: str = "development"

    LOG_LEVEL: str = "INFO"

    # ---------------------------------------------------------------------------
    # CLIENT SURFACES
    # ---------------------------------------------------------------------------
    # APP_SCHEME: Deep link the native app registers (redirect target for mobile)
    APP_SCHEME: str = "relayapp://"

    # BASE_URL: Public origin of the web client and of this API
    BASE_URL: str = "http://localhost:8081"

    # ---------------------------------------------------------------------------
    # GOOGLE OAUTH SETTINGS
    # ---------------------------------------------------------------------------
    # The relay is the only party that knows the client secret.
    # Register GOOGLE_REDIRECT_URI as the single authorized redirect URI
    # in Google Cloud Console; clients never talk to Google directly.
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:8081/api/auth/callback"

    GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
    GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    # JWKS used to verify the id_token returned by the token endpoint
    GOOGLE_CERTS_URL: str = "https://www.googleapis.com/oauth2/v3/certs"
    GOOGLE_ISSUERS: List[str] = ["https://accounts.google.com", "accounts.google.com"]

    DEFAULT_SCOPE: str = "openid profile email"
    OAUTH_PROMPT: str = "select_account"

    # Internal client identifiers the authorize endpoint accepts
    SUPPORTED_CLIENTS: List[str] = ["google"]

    # Timeout in seconds for calls to the identity provider
    UPSTREAM_TIMEOUT: float = 30.0

    # ---------------------------------------------------------------------------
    # SESSION TOKEN SETTINGS
    # ---------------------------------------------------------------------------
    # SECRET_KEY: Signs session tokens
    # - MUST be changed in production to a long, random string
    # - Generate with: openssl rand -hex 32
    SECRET_KEY: str = "change-me-in-production"

    # HS256: symmetric, the relay both signs and verifies
    ALGORITHM: str = "HS256"

    # Deliberately tiny for demonstration, lengthen in production.
    # There is no refresh: once expired the user signs in again.
    SESSION_TOKEN_EXPIRE_SECONDS: int = 20

    # ---------------------------------------------------------------------------
    # COOKIE POLICY (web clients)
    # ---------------------------------------------------------------------------
    COOKIE_NAME: str = "auth_token"
    COOKIE_PATH: str = "/"
    COOKIE_MAX_AGE: int = 20
    COOKIE_HTTPONLY: bool = True
    COOKIE_SAMESITE: str = "lax"

    # ---------------------------------------------------------------------------
    # NATIVE SECURE STORE KEYS
    # ---------------------------------------------------------------------------
    TOKEN_KEY_NAME: str = "accessToken"
    REFRESH_TOKEN_KEY_NAME: str = "refreshToken"

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies require HTTPS, so only set the flag in production."""
        return self.ENVIRONMENT == "production"


# ---------------------------------------------------------------------------
# GLOBAL SETTINGS INSTANCE
# ---------------------------------------------------------------------------
# Usage: from app.core.config import settings
settings = Settings()
