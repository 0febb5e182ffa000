"""
In-memory accessory registry.

Holds one thermostat + humidity sensor accessory per Sensibo pod and
receives characteristic updates from the reconciliation engine.
"""

import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Tuple

from sensibo_bridge.accessories.base import AccessorySink
from sensibo_bridge.models.device import Device, HeatingCoolingState, TemperatureDisplayUnits
from sensibo_bridge.services.state_mapper import (
    DEFAULT_HUMIDITY,
    DEFAULT_TEMPERATURE,
    TARGET_TEMPERATURE_MAX,
    TARGET_TEMPERATURE_MIN,
)
from sensibo_bridge.utils.logging import get_logger
from sensibo_bridge.utils.text_utils import humidity_service_name

logger = get_logger(__name__)

MANUFACTURER = "Sensibo"

# Fixed namespace so the same pod always maps to the same accessory UUID
ACCESSORY_NAMESPACE = uuid.UUID("7d6f1d1e-2b0a-5c7e-9f43-5e6e5b1b0c21")

HISTORY_SIZE = 50

CURRENT_TEMPERATURE = "CurrentTemperature"
TARGET_TEMPERATURE = "TargetTemperature"
CURRENT_HEATING_COOLING_STATE = "CurrentHeatingCoolingState"
TARGET_HEATING_COOLING_STATE = "TargetHeatingCoolingState"
CURRENT_RELATIVE_HUMIDITY = "CurrentRelativeHumidity"


def accessory_uuid(device_id: str) -> str:
    """Stable accessory identifier derived from the Sensibo pod ID."""
    return str(uuid.uuid5(ACCESSORY_NAMESPACE, device_id))


@dataclass
class Accessory:
    """Thermostat + humidity sensor exposed for one pod."""
    uuid: str
    device: Device
    characteristics: Dict[str, Any] = field(default_factory=lambda: {
        CURRENT_TEMPERATURE: float(DEFAULT_TEMPERATURE),
        TARGET_TEMPERATURE: DEFAULT_TEMPERATURE,
        CURRENT_HEATING_COOLING_STATE: HeatingCoolingState.OFF,
        TARGET_HEATING_COOLING_STATE: HeatingCoolingState.OFF,
        CURRENT_RELATIVE_HUMIDITY: float(DEFAULT_HUMIDITY),
    })
    history: Deque[Tuple[str, str, Any]] = field(
        default_factory=lambda: deque(maxlen=HISTORY_SIZE)
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response format."""
        return {
            "uuid": self.uuid,
            "displayName": self.device.name,
            "information": {
                "manufacturer": MANUFACTURER,
                "model": self.device.model,
                "serialNumber": self.device.id,
                "firmwareRevision": self.device.firmware_version,
            },
            "thermostat": {
                CURRENT_TEMPERATURE: self.characteristics[CURRENT_TEMPERATURE],
                TARGET_TEMPERATURE: self.characteristics[TARGET_TEMPERATURE],
                CURRENT_HEATING_COOLING_STATE: int(self.characteristics[CURRENT_HEATING_COOLING_STATE]),
                TARGET_HEATING_COOLING_STATE: int(self.characteristics[TARGET_HEATING_COOLING_STATE]),
                "TemperatureDisplayUnits": int(TemperatureDisplayUnits.CELSIUS),
                "targetTemperatureProps": {
                    "minValue": TARGET_TEMPERATURE_MIN,
                    "maxValue": TARGET_TEMPERATURE_MAX,
                    "minStep": 1,
                },
            },
            "humiditySensor": {
                "name": humidity_service_name(self.device.name),
                CURRENT_RELATIVE_HUMIDITY: self.characteristics[CURRENT_RELATIVE_HUMIDITY],
            },
        }


class AccessoryRegistry(AccessorySink):
    """
    Registry of exposed accessories, keyed by accessory UUID.

    Accessories survive re-discovery: registering a pod whose UUID is
    already known restores the existing accessory with fresh metadata.
    """

    def __init__(self):
        self._accessories: Dict[str, Accessory] = {}

    def register(self, device: Device) -> Tuple[Accessory, bool]:
        """
        Create or restore the accessory for a pod.

        Args:
            device: Discovered Sensibo pod

        Returns:
            Tuple of (accessory, restored)
        """
        key = accessory_uuid(device.id)
        existing = self._accessories.get(key)

        if existing:
            logger.info(f"Restoring existing accessory: {device.name}")
            existing.device = device
            return existing, True

        logger.info(f"Adding new accessory: {device.name}", device_id=device.id)
        accessory = Accessory(uuid=key, device=device)
        self._accessories[key] = accessory
        return accessory, False

    def get(self, key: str) -> Optional[Accessory]:
        """Look up an accessory by UUID."""
        return self._accessories.get(key)

    def get_by_device(self, device_id: str) -> Optional[Accessory]:
        """Look up an accessory by Sensibo pod ID."""
        return self._accessories.get(accessory_uuid(device_id))

    def all(self) -> List[Accessory]:
        """All accessories in registration order."""
        return list(self._accessories.values())

    def _update(self, device_id: str, characteristic: str, value: Any) -> None:
        accessory = self.get_by_device(device_id)

        # Guard clause: pod was never registered
        if not accessory:
            logger.warning("characteristic_update_for_unknown_device", device_id=device_id)
            return

        accessory.characteristics[characteristic] = value
        accessory.history.append(
            (datetime.now(timezone.utc).isoformat(), characteristic, value)
        )
        logger.debug(
            "characteristic_updated",
            device=accessory.device.name,
            characteristic=characteristic,
            value=value
        )

    def update_current_temperature(self, device_id: str, value: float) -> None:
        self._update(device_id, CURRENT_TEMPERATURE, value)

    def update_target_temperature(self, device_id: str, value: int) -> None:
        self._update(device_id, TARGET_TEMPERATURE, value)

    def update_current_heating_cooling_state(
        self,
        device_id: str,
        value: HeatingCoolingState
    ) -> None:
        self._update(device_id, CURRENT_HEATING_COOLING_STATE, HeatingCoolingState(value))

    def update_target_heating_cooling_state(
        self,
        device_id: str,
        value: HeatingCoolingState
    ) -> None:
        self._update(device_id, TARGET_HEATING_COOLING_STATE, HeatingCoolingState(value))

    def update_current_relative_humidity(self, device_id: str, value: float) -> None:
        self._update(device_id, CURRENT_RELATIVE_HUMIDITY, value)
