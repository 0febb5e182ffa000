"""
FastAPI dependency injection for the bridge runtime.
Centralizes bridge/accessory lookup to avoid repetition in routers.
"""

from fastapi import Depends, HTTPException, Request, status

from sensibo_bridge.accessories.registry import Accessory
from sensibo_bridge.services.bridge import Bridge


def get_bridge(request: Request) -> Bridge:
    """
    Dependency that provides the running Bridge.

    Raises:
        HTTPException: 503 if the bridge has not been started
    """
    bridge = getattr(request.app.state, "bridge", None)
    if bridge is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Bridge not started"
        )
    return bridge


def get_accessory(
    accessory_id: str,
    bridge: Bridge = Depends(get_bridge)
) -> Accessory:
    """
    Dependency that resolves an accessory UUID from the path.

    Raises:
        HTTPException: 404 if no accessory has that UUID
    """
    accessory = bridge.get_accessory(accessory_id)
    if accessory is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Accessory not found: {accessory_id}"
        )
    return accessory
