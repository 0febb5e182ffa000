"""
Bridge service - wires discovery, reconciliation, commands and accessories.

This is the accessory-exposure side: routes talk to the Bridge, never to
the reconciler or gateway directly.
"""

from typing import List, Optional

from sensibo_bridge.accessories.registry import (
    TARGET_HEATING_COOLING_STATE,
    Accessory,
    AccessoryRegistry,
)
from sensibo_bridge.devices.base import RemoteClient
from sensibo_bridge.devices.sensibo_client import SensiboClient
from sensibo_bridge.models.config import BridgeConfig
from sensibo_bridge.models.device import Device, HeatingCoolingState
from sensibo_bridge.services.command_gateway import CommandGateway
from sensibo_bridge.services.reconciler import DeviceReconciler
from sensibo_bridge.services.scheduler import FleetScheduler, SleepFunc
from sensibo_bridge.utils.logging import get_logger

logger = get_logger(__name__)


class Bridge:
    """
    Sensibo → accessory bridge.

    Handles:
    - Device discovery and accessory registration (restoring known UUIDs)
    - Fleet scheduling lifecycle
    - User commands, mirrored into the accessory on success
    """

    def __init__(
        self,
        client: RemoteClient,
        registry: Optional[AccessoryRegistry] = None,
        fleet: Optional[FleetScheduler] = None,
        forward_temperature_while_off: bool = False,
        force_power_on_with_temperature: bool = False
    ):
        self.client = client
        self.registry = registry or AccessoryRegistry()
        self.fleet = fleet or FleetScheduler()
        self.gateway = CommandGateway(
            client,
            self.fleet,
            forward_temperature_while_off=forward_temperature_while_off,
            force_power_on_with_temperature=force_power_on_with_temperature
        )

    @classmethod
    def from_config(cls, config: BridgeConfig, sleep: Optional[SleepFunc] = None) -> "Bridge":
        """Build a bridge with a SensiboClient from configuration."""
        client = SensiboClient(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.request_timeout,
            sim_mode=config.sim_mode
        )
        scheduler_kwargs = {"sleep": sleep} if sleep else {}
        fleet = FleetScheduler(
            polling_interval=config.polling_interval,
            inter_device_delay=config.inter_device_delay,
            initial_delay=config.initial_delay,
            **scheduler_kwargs
        )
        return cls(
            client,
            fleet=fleet,
            forward_temperature_while_off=config.forward_temperature_while_off,
            force_power_on_with_temperature=config.force_power_on_with_temperature
        )

    async def discover(self) -> List[Device]:
        """
        Discover pods and register one accessory + reconciler per pod.

        Discovery failures are logged and leave the bridge empty.

        Returns:
            Discovered devices in API order
        """
        logger.info("Discovering Sensibo devices...")
        try:
            devices = await self.client.list_devices()
        except Exception as e:
            logger.error("Error discovering devices", error=str(e))
            return []

        for device in devices:
            self.registry.register(device)
            if self.fleet.get(device.id) is None:
                self.fleet.add(DeviceReconciler(device, self.client, self.registry))

        logger.info("discovery_finished", devices=len(devices))
        return devices

    def start(self) -> None:
        self.fleet.start()

    async def stop(self) -> None:
        await self.fleet.stop()
        await self.client.close()

    def get_accessory(self, accessory_uuid: str) -> Optional[Accessory]:
        return self.registry.get(accessory_uuid)

    async def set_target_heating_cooling_state(
        self,
        accessory: Accessory,
        value: HeatingCoolingState
    ) -> HeatingCoolingState:
        """Send a mode change and mirror it into the accessory on success."""
        state = await self.gateway.set_mode(accessory.device.id, value)
        self.registry.update_target_heating_cooling_state(accessory.device.id, state)
        return state

    async def set_target_temperature(self, accessory: Accessory, value: float) -> int:
        """Send a target temperature change and mirror it on success."""
        device_id = accessory.device.id
        temperature = await self.gateway.set_target_temperature(device_id, value)
        self.registry.update_target_temperature(device_id, temperature)

        # A forced power-on may have changed the cached target state too
        state = self.fleet.get(device_id).snapshot.target_heating_cooling_state
        if accessory.characteristics[TARGET_HEATING_COOLING_STATE] != state:
            self.registry.update_target_heating_cooling_state(device_id, state)
        return temperature
