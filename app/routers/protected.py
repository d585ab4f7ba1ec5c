"""
Protected router - example resources behind the session guard.
All endpoints here require a session token (cookie or Authorization header).
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from app.deps import get_current_user
from app.schemas.auth import AuthUser

# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/api/protected", tags=["protected"])


# ---------------------------------------------------------------------------
# GET /api/protected/data - Example protected payload
# ---------------------------------------------------------------------------
@router.get("/data")
async def read_protected_data(request: Request, user: AuthUser = Depends(get_current_user)):
    """
    Return protected data along with who asked for it.

    If the token is missing, invalid or expired this function never runs;
    get_current_user raises 401 first.
    """
    return {
        "data": {
            "secretMessage": "This is protected data!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
        },
        "user": {
            "name": user.name,
            "email": user.email,
        },
    }
