"""
Accessory endpoints - read characteristics and issue thermostat commands.

This is a thin HTTP adapter - all business logic is in Bridge/CommandGateway.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from sensibo_bridge.accessories.registry import Accessory
from sensibo_bridge.dependencies import get_accessory, get_bridge
from sensibo_bridge.errors import AuthError, TransportError
from sensibo_bridge.models.device import HeatingCoolingState
from sensibo_bridge.services.bridge import Bridge
from sensibo_bridge.utils.auth import validate_api_key
from sensibo_bridge.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class TargetStateRequest(BaseModel):
    """Request model for target heating/cooling state changes."""
    value: HeatingCoolingState


class TargetTemperatureRequest(BaseModel):
    """Request model for target temperature changes (clamped to 16-30)."""
    value: float


def _command_failed(accessory: Accessory, error: TransportError) -> HTTPException:
    """Translate a failed Sensibo write into a 502 for the caller."""
    if isinstance(error, AuthError):
        detail = f"Sensibo rejected the API key while controlling {accessory.device.name} - check API key"
    else:
        detail = f"Failed to control {accessory.device.name}: {error}"
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


@router.get("/accessories")
async def list_accessories(
    bridge: Bridge = Depends(get_bridge),
    _: None = Depends(validate_api_key)
):
    """
    List all exposed accessories with their current characteristic values.

    Returns:
        dict: {"accessories": [...]}
    """
    return {"accessories": [a.to_dict() for a in bridge.registry.all()]}


@router.get("/accessories/{accessory_id}")
async def get_accessory_detail(
    accessory: Accessory = Depends(get_accessory),
    bridge: Bridge = Depends(get_bridge),
    _: None = Depends(validate_api_key)
):
    """
    Get one accessory, its reconciled snapshot and recent changes.
    """
    result = accessory.to_dict()

    reconciler = bridge.fleet.get(accessory.device.id)
    if reconciler:
        result["snapshot"] = reconciler.snapshot.to_dict()
        result["reconciling"] = reconciler.is_reconciling

    result["history"] = [
        {"at": at, "characteristic": name, "value": int(value) if isinstance(value, HeatingCoolingState) else value}
        for at, name, value in accessory.history
    ]
    return result


@router.put("/accessories/{accessory_id}/target-heating-cooling-state")
async def set_target_heating_cooling_state(
    request: TargetStateRequest,
    accessory: Accessory = Depends(get_accessory),
    bridge: Bridge = Depends(get_bridge),
    _: None = Depends(validate_api_key)
):
    """
    Set the target heating/cooling state (0=off, 1=heat, 2=cool, 3=auto).

    The accessory only reflects the new value after Sensibo accepted it.
    """
    try:
        state = await bridge.set_target_heating_cooling_state(accessory, request.value)
    except TransportError as e:
        raise _command_failed(accessory, e)

    return {"ok": True, "uuid": accessory.uuid, "targetHeatingCoolingState": int(state)}


@router.put("/accessories/{accessory_id}/target-temperature")
async def set_target_temperature(
    request: TargetTemperatureRequest,
    accessory: Accessory = Depends(get_accessory),
    bridge: Bridge = Depends(get_bridge),
    _: None = Depends(validate_api_key)
):
    """
    Set the target temperature in Celsius.

    Values outside 16-30 are clamped before anything is sent. While the
    unit is off the value is only cached (see CommandGateway policy).
    """
    try:
        temperature = await bridge.set_target_temperature(accessory, request.value)
    except TransportError as e:
        raise _command_failed(accessory, e)

    return {"ok": True, "uuid": accessory.uuid, "targetTemperature": temperature}


@router.post("/refresh")
async def refresh(
    bridge: Bridge = Depends(get_bridge),
    _: None = Depends(validate_api_key)
):
    """
    Run a fleet reconciliation cycle now.

    Returns:
        dict: {"ok": true, "ran": bool} - ran is false if a cycle was in progress
    """
    ran = await bridge.fleet.run_cycle()
    return {"ok": True, "ran": ran}
