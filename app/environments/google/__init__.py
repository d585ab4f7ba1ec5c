"""
Google Environment Module - Google as the relay's identity provider.

Usage:
======
    from app.environments.google import GoogleAuthClient

    auth_client = GoogleAuthClient()
    url = auth_client.get_authorization_url(scope="openid email", state="web|abc")

    # After the callback
    tokens = await auth_client.exchange_code_for_tokens(code)
    claims = await auth_client.verify_id_token(tokens.id_token, tokens.access_token)
"""

from app.environments.google.auth import GoogleAuthClient, GoogleIdentityClaims

__all__ = [
    "GoogleAuthClient",
    "GoogleIdentityClaims",
]
