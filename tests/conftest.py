"""
Pytest fixtures for testing.
Provides an in-memory remote client, a recording accessory sink and a
fake clock so reconciliation can be driven without network or wall-clock.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from sensibo_bridge.accessories.base import AccessorySink
from sensibo_bridge.devices.base import RemoteClient
from sensibo_bridge.errors import StateUnavailable
from sensibo_bridge.models.device import (
    ClimateState,
    Device,
    HeatingCoolingState,
    MeasuredState,
    VendorCommand,
)


class FakeRemoteClient(RemoteClient):
    """
    In-memory RemoteClient.

    measurements/climate_states map device_id to a value or an exception
    instance to raise. Missing entries raise StateUnavailable.
    """

    def __init__(self, devices: Optional[List[Device]] = None):
        super().__init__(sim_mode=False)
        self.devices = devices or []
        self.measurements: Dict[str, Any] = {}
        self.climate_states: Dict[str, Any] = {}
        self.command_error: Optional[Exception] = None
        self.commands: List[Tuple[str, Dict[str, Any]]] = []
        self.calls: List[Tuple[str, Any]] = []

    async def list_devices(self) -> List[Device]:
        self.calls.append(("list_devices", None))
        return list(self.devices)

    def _lookup(self, table: Dict[str, Any], device_id: str):
        value = table.get(device_id)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise StateUnavailable(device_id)
        return value

    async def get_latest_measurement(self, device_id: str) -> MeasuredState:
        self.calls.append(("measurement", device_id))
        return self._lookup(self.measurements, device_id)

    async def get_latest_climate_state(self, device_id: str) -> ClimateState:
        self.calls.append(("climate", device_id))
        return self._lookup(self.climate_states, device_id)

    async def set_climate_state(self, device_id: str, command: VendorCommand) -> bool:
        self.calls.append(("set", device_id))
        if self.command_error is not None:
            raise self.command_error
        self.commands.append((device_id, command.to_payload()))
        return True


class RecordingSink(AccessorySink):
    """AccessorySink that records every notification."""

    def __init__(self):
        self.events: List[Tuple[str, str, Any]] = []

    def update_current_temperature(self, device_id: str, value: float) -> None:
        self.events.append(("current_temperature", device_id, value))

    def update_target_temperature(self, device_id: str, value: int) -> None:
        self.events.append(("target_temperature", device_id, value))

    def update_current_heating_cooling_state(self, device_id: str, value: HeatingCoolingState) -> None:
        self.events.append(("current_heating_cooling_state", device_id, value))

    def update_target_heating_cooling_state(self, device_id: str, value: HeatingCoolingState) -> None:
        self.events.append(("target_heating_cooling_state", device_id, value))

    def update_current_relative_humidity(self, device_id: str, value: float) -> None:
        self.events.append(("current_relative_humidity", device_id, value))


class FakeSleep:
    """Awaitable sleep that records delays instead of waiting."""

    def __init__(self, log: Optional[list] = None):
        self.delays: List[float] = []
        self.log = log

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.log is not None:
            self.log.append(("sleep", seconds))


@pytest.fixture
def devices():
    """Three pods in discovery order."""
    return [
        Device(id="pod-a", name="Parents Room", room_name="Parents Room"),
        Device(id="pod-b", name="Kids Room", room_name="Kids Room"),
        Device(id="pod-c", name="Office", room_name="Office"),
    ]


@pytest.fixture
def fake_client(devices):
    """FakeRemoteClient with every pod reporting 21°C/50% and cooling to 22."""
    client = FakeRemoteClient(devices)
    for device in devices:
        client.measurements[device.id] = MeasuredState(temperature=21.0, humidity=50)
        client.climate_states[device.id] = ClimateState(on=True, mode="cool", target_temperature=22)
    return client


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def fake_sleep():
    return FakeSleep()
