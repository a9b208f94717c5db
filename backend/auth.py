"""Authentication: API key validation and the session user."""

import os
import secrets
from typing import List, Optional
from fastapi import Depends, HTTPException, Header

from backend.models import SessionUser


# ============================================================================
# Configuration
# ============================================================================

def get_valid_api_keys() -> List[str]:
    """
    Get valid API keys from the API_KEYS environment variable.

    Returns:
        List of valid API keys (comma-separated in the environment)
    """
    api_keys_env = os.getenv("API_KEYS", "")
    if not api_keys_env:
        return []

    return [key.strip() for key in api_keys_env.split(",") if key.strip()]


# ============================================================================
# Security Utilities
# ============================================================================

def constant_time_compare(val1: str, val2: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks."""
    return secrets.compare_digest(val1.encode(), val2.encode())


def validate_api_key(api_key: str) -> bool:
    """
    Validate an API key against the list of valid keys.

    Returns:
        True if the API key is valid. With no keys configured every key is rejected.
    """
    valid_keys = get_valid_api_keys()

    if not valid_keys:
        return False

    for valid_key in valid_keys:
        if constant_time_compare(api_key, valid_key):
            return True

    return False


# ============================================================================
# Authentication Dependencies
# ============================================================================

async def get_api_key(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> str:
    """
    FastAPI dependency to validate the X-API-Key header.

    Raises:
        HTTPException: 401 if the API key is missing or invalid
    """
    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing API key. Please provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not validate_api_key(x_api_key):
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return x_api_key


async def get_current_user(
    api_key: str = Depends(get_api_key),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_type: str = Header("regular", alias="X-User-Type"),
) -> SessionUser:
    """
    Session user for the request.

    The trusted frontend authenticates end users and forwards their identity
    in X-User-Id / X-User-Type alongside its API key.

    Raises:
        HTTPException: 401 if the user id is missing or the user type is unknown
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    if x_user_type not in ("guest", "regular"):
        raise HTTPException(status_code=401, detail=f"Unknown user type: {x_user_type}")

    return SessionUser(id=x_user_id, type=x_user_type)
