"""
Tests for the accessory registry.
"""

from dataclasses import replace

import pytest

from sensibo_bridge.accessories.registry import (
    HISTORY_SIZE,
    AccessoryRegistry,
    accessory_uuid,
)
from sensibo_bridge.models.device import Device, HeatingCoolingState


@pytest.fixture
def registry():
    return AccessoryRegistry()


@pytest.fixture
def pod():
    return Device(id="pod-a", name="Parents Room", room_name="Parents Room")


def test_accessory_uuid_is_stable():
    assert accessory_uuid("pod-a") == accessory_uuid("pod-a")
    assert accessory_uuid("pod-a") != accessory_uuid("pod-b")


def test_register_new_accessory_has_defaults(registry, pod):
    accessory, restored = registry.register(pod)

    assert restored is False
    assert accessory.uuid == accessory_uuid("pod-a")
    assert accessory.characteristics["CurrentTemperature"] == 20.0
    assert accessory.characteristics["TargetTemperature"] == 20
    assert accessory.characteristics["TargetHeatingCoolingState"] == HeatingCoolingState.OFF
    assert accessory.characteristics["CurrentRelativeHumidity"] == 50.0


def test_rediscovery_restores_existing_accessory(registry, pod):
    first, _ = registry.register(pod)
    registry.update_target_temperature("pod-a", 24)

    renamed = replace(pod, name="Main Bedroom")
    second, restored = registry.register(renamed)

    assert restored is True
    assert second is first
    assert second.device.name == "Main Bedroom"
    assert second.characteristics["TargetTemperature"] == 24
    assert len(registry.all()) == 1


def test_updates_are_recorded(registry, pod):
    registry.register(pod)

    registry.update_current_temperature("pod-a", 23.5)
    registry.update_current_heating_cooling_state("pod-a", 2)

    accessory = registry.get_by_device("pod-a")
    assert accessory.characteristics["CurrentTemperature"] == 23.5
    assert accessory.characteristics["CurrentHeatingCoolingState"] is HeatingCoolingState.COOL
    assert [h[1] for h in accessory.history] == [
        "CurrentTemperature",
        "CurrentHeatingCoolingState",
    ]


def test_history_is_bounded(registry, pod):
    registry.register(pod)

    for i in range(HISTORY_SIZE + 10):
        registry.update_current_relative_humidity("pod-a", float(i))

    assert len(registry.get_by_device("pod-a").history) == HISTORY_SIZE


def test_update_for_unknown_device_is_ignored(registry):
    registry.update_target_temperature("ghost", 21)

    assert registry.all() == []


def test_to_dict(registry, pod):
    accessory, _ = registry.register(pod)
    registry.update_target_heating_cooling_state("pod-a", HeatingCoolingState.HEAT)

    data = accessory.to_dict()

    assert data["displayName"] == "Parents Room"
    assert data["information"] == {
        "manufacturer": "Sensibo",
        "model": "Sensibo Sky",
        "serialNumber": "pod-a",
        "firmwareRevision": "1.0.0",
    }
    assert data["thermostat"]["TargetHeatingCoolingState"] == 1
    assert data["thermostat"]["TemperatureDisplayUnits"] == 0
    assert data["thermostat"]["targetTemperatureProps"] == {
        "minValue": 16,
        "maxValue": 30,
        "minStep": 1,
    }
    assert data["humiditySensor"]["name"] == "Parents Room Humidity"
