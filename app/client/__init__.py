"""
Client module - the client side of the relay's sign-in protocol.

- session: SessionController, the single owner of ClientSessionState
- transports: web (cookie) and native (bearer) session transports
- auth_request: discovery document, prepared auth request, browser launcher
- storage: secure token store abstraction for native clients
"""

from app.client.auth_request import (
    AuthError,
    AuthRequest,
    AuthSessionResult,
    BrowserLauncher,
    DiscoveryDocument,
)
from app.client.session import ClientSessionState, SessionController
from app.client.storage import MemoryTokenStore, TokenStore, TokenStoreError
from app.client.transports import (
    NativeBearerTransport,
    SessionGrant,
    SessionTransport,
    WebCookieTransport,
    create_transport,
)

__all__ = [
    "AuthError",
    "AuthRequest",
    "AuthSessionResult",
    "BrowserLauncher",
    "DiscoveryDocument",
    "ClientSessionState",
    "SessionController",
    "MemoryTokenStore",
    "TokenStore",
    "TokenStoreError",
    "NativeBearerTransport",
    "SessionGrant",
    "SessionTransport",
    "WebCookieTransport",
    "create_transport",
]
