"""
Routers module - API endpoint handlers organized by feature.

- auth: OAuth relay (authorize, callback, token) and session/logout
- protected: Example resources behind the session guard
"""
