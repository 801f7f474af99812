"""Bearer-token authentication for the /api routes."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.errors import Unauthenticated

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through our own 401 handler
security = HTTPBearer(auto_error=False)


async def require_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Resolve the caller's user id from the session table, or reject with 401."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Unauthorized")

    tokens: dict[str, str] = request.app.state.settings.API_TOKENS
    user_id = tokens.get(credentials.credentials)
    if user_id is None:
        logger.warning("Rejected request with unknown bearer token")
        raise Unauthenticated("Unauthorized")
    return user_id
