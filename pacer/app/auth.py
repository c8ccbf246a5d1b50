"""API key authentication for the device talking to the tracker."""

import logging
import os
import secrets

from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)


def get_api_key() -> str | None:
    """Get the device API key, or None when authentication is disabled."""
    return os.getenv("PACER_API_KEY") or None


async def require_device_key(x_api_key: str | None = Header(None)) -> None:
    """FastAPI dependency checking the X-API-Key header.

    When PACER_API_KEY is unset every request is allowed, which is meant for
    local development only.

    Raises:
        HTTPException 401 if the key is missing or wrong.
    """
    expected_key = get_api_key()
    if expected_key is None:
        return
    if x_api_key and secrets.compare_digest(x_api_key, expected_key):
        logger.debug("Authenticated via API key")
        return
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing API key",
    )
