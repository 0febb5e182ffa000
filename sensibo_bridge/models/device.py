"""
Domain models for Sensibo devices and their reconciled accessory state.

These are pure data structures with no I/O dependencies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional, Dict, Any


class HeatingCoolingState(IntEnum):
    """Accessory heating/cooling state (HomeKit numbering)."""
    OFF = 0
    HEAT = 1
    COOL = 2
    AUTO = 3  # Target-only, never an observed current state


class TemperatureDisplayUnits(IntEnum):
    """Accessory temperature display units."""
    CELSIUS = 0
    FAHRENHEIT = 1


@dataclass(frozen=True)
class Device:
    """A Sensibo pod as returned by discovery."""
    id: str
    name: str
    model: str = "Sensibo Sky"
    firmware_version: str = "1.0.0"
    room_name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Device":
        """
        Build a Device from a /users/me/pods result row.

        Args:
            data: Raw pod dict (requires "id", room name falls back to the id)

        Returns:
            Device instance
        """
        room_name = (data.get("room") or {}).get("name")
        return cls(
            id=str(data["id"]),
            name=room_name or str(data["id"]),
            model=data.get("productModel") or "Sensibo Sky",
            firmware_version=data.get("firmwareVersion") or "1.0.0",
            room_name=room_name,
        )


@dataclass
class MeasuredState:
    """Latest ambient reading reported by the pod."""
    temperature: Optional[float] = None
    humidity: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "MeasuredState":
        return cls(
            temperature=data.get("temperature"),
            humidity=data.get("humidity"),
        )


@dataclass
class ClimateState:
    """The controllable power/mode/target-temperature triple."""
    on: bool = False
    mode: Optional[str] = None
    target_temperature: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ClimateState":
        return cls(
            on=bool(data.get("on", False)),
            mode=data.get("mode"),
            target_temperature=data.get("targetTemperature"),
        )


@dataclass
class VendorCommand:
    """Partial AC state sent to POST /pods/{id}/acStates."""
    on: Optional[bool] = None
    mode: Optional[str] = None
    target_temperature: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """Convert to Sensibo acState format, omitting unset fields."""
        payload: Dict[str, Any] = {}
        if self.on is not None:
            payload["on"] = self.on
        if self.mode is not None:
            payload["mode"] = self.mode
        if self.target_temperature is not None:
            payload["targetTemperature"] = self.target_temperature
        return payload


@dataclass
class ReconciledSnapshot:
    """
    Last-known characteristic values for one device.

    Created with defaults at registration, refreshed by reconciliation
    passes and by successful commands.

    pending_target_temperature holds a value chosen while the unit was off
    and not yet sent; polls keep it until the unit is switched on.
    """
    current_temperature: float = 20.0
    current_relative_humidity: float = 50.0
    target_temperature: int = 20
    current_heating_cooling_state: HeatingCoolingState = HeatingCoolingState.OFF
    target_heating_cooling_state: HeatingCoolingState = HeatingCoolingState.OFF
    pending_target_temperature: Optional[int] = None
    measured: Optional[MeasuredState] = None
    climate: Optional[ClimateState] = None
    last_measured_at: Optional[datetime] = None
    last_climate_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response format."""
        return {
            "currentTemperature": self.current_temperature,
            "currentRelativeHumidity": self.current_relative_humidity,
            "targetTemperature": self.target_temperature,
            "currentHeatingCoolingState": int(self.current_heating_cooling_state),
            "targetHeatingCoolingState": int(self.target_heating_cooling_state),
            "pendingTargetTemperature": self.pending_target_temperature,
            "temperatureDisplayUnits": int(TemperatureDisplayUnits.CELSIUS),
            "lastMeasuredAt": self.last_measured_at.isoformat() if self.last_measured_at else None,
            "lastClimateAt": self.last_climate_at.isoformat() if self.last_climate_at else None,
        }
