"""
Accessory sink interface.

The reconciliation engine pushes characteristic changes through this
interface and never touches a host runtime's types directly.
"""

from abc import ABC, abstractmethod

from sensibo_bridge.models.device import HeatingCoolingState


class AccessorySink(ABC):
    """
    Receives characteristic change notifications, one method per characteristic.

    Implementations must not block: they are called from inside a
    reconciliation pass.
    """

    @abstractmethod
    def update_current_temperature(self, device_id: str, value: float) -> None:
        """Thermostat CurrentTemperature changed."""

    @abstractmethod
    def update_target_temperature(self, device_id: str, value: int) -> None:
        """Thermostat TargetTemperature changed."""

    @abstractmethod
    def update_current_heating_cooling_state(
        self,
        device_id: str,
        value: HeatingCoolingState
    ) -> None:
        """Thermostat CurrentHeatingCoolingState changed."""

    @abstractmethod
    def update_target_heating_cooling_state(
        self,
        device_id: str,
        value: HeatingCoolingState
    ) -> None:
        """Thermostat TargetHeatingCoolingState changed."""

    @abstractmethod
    def update_current_relative_humidity(self, device_id: str, value: float) -> None:
        """HumiditySensor CurrentRelativeHumidity changed."""
