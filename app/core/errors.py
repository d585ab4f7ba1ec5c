"""
Relay errors - the HTTP-facing error taxonomy.

Every endpoint failure is raised as one of these and turned into a
response by the handler registered in app.main, so nothing escapes the
handler boundary as a 500 traceback.

Status codes:
=============
- 500: ConfigMissing (server misconfigured)
- 400: InvalidRedirect, UnsupportedClient, MissingCode, MissingState,
       InvalidState, UpstreamExchangeFailed (client-correctable or provider-side)
- 401: Unauthenticated, InvalidToken, TokenExpired
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response


class RelayError(Exception):
    """Base class for errors returned by relay endpoints."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"
    # "json" -> {"error": message}, "text" -> plain body
    kind: str = "json"
    headers: dict | None = None

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_response(self) -> Response:
        if self.kind == "text":
            return PlainTextResponse(
                self.message, status_code=self.status_code, headers=self.headers
            )
        return JSONResponse(
            {"error": self.message}, status_code=self.status_code, headers=self.headers
        )


class ConfigMissing(RelayError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Server is not configured"


class InvalidRedirect(RelayError):
    message = "Invalid redirect_uri"


class UnsupportedClient(RelayError):
    message = "Unsupported client"


class MissingState(RelayError):
    message = "Invalid state parameter"


class InvalidState(RelayError):
    message = "Invalid state parameter"


class MissingCode(RelayError):
    message = "Missing auth code"
    kind = "text"


class UpstreamExchangeFailed(RelayError):
    message = "Failed to retrieve ID token"
    kind = "text"


class Unauthenticated(RelayError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication required"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidToken(RelayError):
    # Same body as TokenExpired so callers can't tell the two apart
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid or expired token"
    headers = {"WWW-Authenticate": "Bearer"}


class TokenExpired(InvalidToken):
    pass


async def relay_error_handler(request: Request, exc: RelayError) -> Response:
    """FastAPI exception handler for RelayError and subclasses."""
    return exc.to_response()
