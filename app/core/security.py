"""Provides API key-based security for the report endpoints."""

import logging
import secrets

from fastapi import Depends
from fastapi import HTTPException
from fastapi.security import APIKeyHeader

from app.core.config import settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key")

__all__ = ["Depends", "api_key_header", "verify_api_key"]


async def verify_api_key(key: str = Depends(api_key_header)) -> bool:
    """Verifies the provided API key against the server's configured API key.

    Used as a router-wide dependency, so it runs before any upload is read.

    Args:
        key: The API key extracted from the 'X-API-Key' header.

    Returns:
        True if the API key is valid.

    Raises:
        HTTPException: With status code 403 if the API key is invalid or
                       if the server has no API key configured.
    """
    if not settings.api_key:
        logger.critical(
            "CRITICAL: API key security is enforced, but no API_KEY is configured "
            "on the server. Report uploads and deletions will be denied."
        )
        raise HTTPException(status_code=403, detail="Invalid API Key")

    if not secrets.compare_digest(key.encode(), settings.api_key.encode()):
        raise HTTPException(status_code=403, detail="Invalid API Key")
    return True
