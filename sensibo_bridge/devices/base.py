"""
Base remote client interface for the climate cloud API.
The reconciliation engine depends only on this interface.
"""

from abc import ABC, abstractmethod
from typing import List

from sensibo_bridge.models.device import ClimateState, Device, MeasuredState, VendorCommand


class RemoteClient(ABC):
    """
    Abstract base class for climate cloud API clients.

    All clients MUST support sim_mode to prevent accidentally controlling
    real AC units during development/testing.
    """

    def __init__(self, sim_mode: bool = False):
        """
        Initialize remote client.

        Args:
            sim_mode: If True, log actions but don't make real API calls.
                     Returns fake but realistic data for testing.
        """
        self.sim_mode = sim_mode

    @abstractmethod
    async def list_devices(self) -> List[Device]:
        """
        List all devices on the account, in API order.

        Raises:
            TransportError: On network/HTTP failure
            AuthError: If the API key is rejected
        """

    @abstractmethod
    async def get_latest_measurement(self, device_id: str) -> MeasuredState:
        """
        Get the most recent temperature/humidity reading.

        Raises:
            StateUnavailable: If the device has no measurement yet
            TransportError: On network/HTTP failure
        """

    @abstractmethod
    async def get_latest_climate_state(self, device_id: str) -> ClimateState:
        """
        Get the most recent AC state (power, mode, target temperature).

        Raises:
            StateUnavailable: If the device has no AC state yet
            TransportError: On network/HTTP failure
        """

    @abstractmethod
    async def set_climate_state(self, device_id: str, command: VendorCommand) -> bool:
        """
        Send a (partial) AC state to the device.

        Returns:
            True on success

        Raises:
            TransportError: On network/HTTP failure
            AuthError: If the API key is rejected
        """

    async def close(self) -> None:
        """Release any transport resources."""
