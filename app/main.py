"""
Main application entry point - FastAPI app instance and configuration.
Run with: uvicorn app.main:app --reload
"""

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import RelayError, relay_error_handler
from app.routers import auth, protected

# ---------------------------------------------------------------------------
# LOGGING
# ---------------------------------------------------------------------------
# All application loggers live under "relay" (relay.routers.auth, ...)
logger = logging.getLogger("relay")
logger.setLevel(settings.LOG_LEVEL)

if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

# ---------------------------------------------------------------------------
# CREATE FASTAPI APPLICATION
# ---------------------------------------------------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ---------------------------------------------------------------------------
# CORS MIDDLEWARE
# ---------------------------------------------------------------------------
# The web client sends the session cookie cross-origin during development,
# and browsers refuse credentialed requests to a wildcard origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.BASE_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# ERROR HANDLING
# ---------------------------------------------------------------------------
# RelayError subclasses carry their own status code and body shape
app.add_exception_handler(RelayError, relay_error_handler)

# ---------------------------------------------------------------------------
# REGISTER ROUTERS
# ---------------------------------------------------------------------------
# auth.router: /api/auth/authorize, /callback, /token, /session, /logout
# protected.router: /api/protected/data
app.include_router(auth.router)
app.include_router(protected.router)


# ---------------------------------------------------------------------------
# HEALTH CHECK ENDPOINT
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
def health_check():
    """Liveness probe. Does not contact the identity provider."""
    return {"status": "ok"}
