"""
Bridge API key authentication.

Distinct from the Sensibo API key: this one protects the bridge's own
HTTP surface (BRIDGE_API_KEY).
"""

import os
import secrets
from typing import Optional
from fastapi import Header, HTTPException, status


def verify_api_key(x_api_key: Optional[str] = Header(None)) -> str:
    """
    Verify the x-api-key header against BRIDGE_API_KEY.

    Raises:
        HTTPException: 500 if BRIDGE_API_KEY is unset, 401 if missing/invalid
    """
    expected_key = os.getenv("BRIDGE_API_KEY")

    if not expected_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="BRIDGE_API_KEY not configured on server"
        )

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing x-api-key header"
        )

    if not secrets.compare_digest(x_api_key, expected_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )

    return x_api_key


# Alias for consistency with route usage
validate_api_key = verify_api_key
