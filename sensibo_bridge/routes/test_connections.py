"""
Test connections endpoint for verifying Sensibo API connectivity.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from sensibo_bridge.dependencies import get_bridge
from sensibo_bridge.devices.base import RemoteClient
from sensibo_bridge.errors import AuthError, BridgeError
from sensibo_bridge.services.bridge import Bridge
from sensibo_bridge.utils.auth import verify_api_key
from sensibo_bridge.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def poll_devices(client: RemoteClient) -> List[Dict[str, Any]]:
    """
    Read every pod once: measurement and AC state.

    Per-device read failures are reported inline instead of failing the poll.

    Raises:
        BridgeError: If listing devices fails
    """
    results = []
    for device in await client.list_devices():
        entry: Dict[str, Any] = {"id": device.id, "name": device.name}

        try:
            measured = await client.get_latest_measurement(device.id)
            entry["temperature"] = measured.temperature
            entry["humidity"] = measured.humidity
        except BridgeError as e:
            entry["measurementError"] = str(e)

        try:
            climate = await client.get_latest_climate_state(device.id)
            entry["acState"] = {
                "on": climate.on,
                "mode": climate.mode,
                "targetTemperature": climate.target_temperature,
            }
        except BridgeError as e:
            entry["acStateError"] = str(e)

        results.append(entry)

    return results


@router.get("/test-connections")
async def test_connections_endpoint(
    bridge: Bridge = Depends(get_bridge),
    api_key: str = Depends(verify_api_key)
) -> Dict[str, Any]:
    """
    Test connectivity to the Sensibo API.

    Returns:
        dict: {
            "sensibo_ok": bool,
            "sim_mode": bool,
            "details": str,
            "devices": [{"id", "name", "temperature", "humidity", "acState"}, ...]
        }
    """
    client = bridge.client
    logger.info("Testing Sensibo connection", sim_mode=client.sim_mode)

    try:
        devices = await poll_devices(client)
    except AuthError as e:
        logger.error(f"Sensibo test failed: {e}")
        return {
            "sensibo_ok": False,
            "sim_mode": client.sim_mode,
            "details": "Authentication failed - check API key",
            "devices": []
        }
    except BridgeError as e:
        logger.error(f"Sensibo test failed: {e}")
        return {
            "sensibo_ok": False,
            "sim_mode": client.sim_mode,
            "details": f"Failed: {e}",
            "devices": []
        }

    logger.info(f"Sensibo test successful: {len(devices)} devices found")
    return {
        "sensibo_ok": True,
        "sim_mode": client.sim_mode,
        "details": f"Connected - found {len(devices)} device(s)",
        "devices": devices
    }
