"""
Health check endpoints.
"""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from sensibo_bridge.dependencies import get_bridge
from sensibo_bridge.services.bridge import Bridge
from sensibo_bridge.utils.auth import validate_api_key

router = APIRouter()


@router.get("/health")
async def health_check(
    bridge: Bridge = Depends(get_bridge),
    _: None = Depends(validate_api_key)
):
    """
    Extended health check with scheduler status.

    Returns:
        dict: {
            "ok": true,
            "timestamp": "2024-01-01T12:00:00.000000+00:00",
            "scheduler": {"running": true, "cycleInProgress": false, ...},
            "devices": 3,
            "simMode": false
        }
    """
    fleet = bridge.fleet

    return {
        "ok": fleet.is_running,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "scheduler": {
            "running": fleet.is_running,
            "cycleInProgress": fleet.cycle_in_progress,
            "cyclesCompleted": fleet.cycles_completed,
            "pollingInterval": fleet.polling_interval,
            "interDeviceDelay": fleet.inter_device_delay,
        },
        "devices": len(fleet.reconcilers),
        "simMode": bridge.client.sim_mode,
    }
