"""
Token storage for native clients.

On a device this is the platform's secure key-value store (Keychain,
Keystore); the session controller only needs get/save/delete.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class TokenStoreError(Exception):
    """Raised when the underlying secure store fails."""
    pass


class TokenStore(ABC):
    """Async key-value store holding session tokens."""

    @abstractmethod
    async def get_token(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def save_token(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def delete_token(self, key: str) -> None:
        pass


class MemoryTokenStore(TokenStore):
    """Process-local store, for tests and headless clients."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._tokens: Dict[str, str] = dict(initial or {})

    async def get_token(self, key: str) -> Optional[str]:
        return self._tokens.get(key)

    async def save_token(self, key: str, value: str) -> None:
        self._tokens[key] = value

    async def delete_token(self, key: str) -> None:
        self._tokens.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._tokens
