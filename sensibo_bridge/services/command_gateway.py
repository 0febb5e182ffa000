"""
Command gateway - turns user target-state changes into Sensibo commands.

The cached snapshot is only updated after the remote write succeeds; a
failed write propagates and leaves the cache as the device last confirmed.
"""

from sensibo_bridge.devices.base import RemoteClient
from sensibo_bridge.models.device import HeatingCoolingState, VendorCommand
from sensibo_bridge.services import state_mapper
from sensibo_bridge.services.scheduler import FleetScheduler
from sensibo_bridge.services.reconciler import DeviceReconciler
from sensibo_bridge.utils.logging import get_logger

logger = get_logger(__name__)


class UnknownDeviceError(KeyError):
    """No reconciler registered for the requested pod."""


class CommandGateway:
    """
    Service for user-issued thermostat commands.

    Temperature policy (one setting for the whole bridge):
    - forward_temperature_while_off=False: while the cached target state is
      OFF, a target temperature change is cached locally and not sent. Polls
      keep the cached value until the unit is switched on, and the next
      set_mode sends it.
    - force_power_on_with_temperature=False: temperature commands carry only
      targetTemperature, never a power change. When enabled, a unit that was
      off resumes its last reported mode in the cache.
    """

    def __init__(
        self,
        client: RemoteClient,
        fleet: FleetScheduler,
        forward_temperature_while_off: bool = False,
        force_power_on_with_temperature: bool = False
    ):
        """
        Initialize command gateway.

        Args:
            client: Remote API client
            fleet: Scheduler owning the per-pod snapshots
            forward_temperature_while_off: Send temperature changes while off
            force_power_on_with_temperature: Add on=true to temperature changes
        """
        self.client = client
        self.fleet = fleet
        self.forward_temperature_while_off = forward_temperature_while_off
        self.force_power_on_with_temperature = force_power_on_with_temperature

    def _reconciler(self, device_id: str) -> DeviceReconciler:
        reconciler = self.fleet.get(device_id)
        if reconciler is None:
            raise UnknownDeviceError(device_id)
        return reconciler

    def _resume_last_mode(self, reconciler: DeviceReconciler) -> None:
        """
        Update the cached target state after a temperature command powered the unit on.

        Sensibo resumes the last mode it reported. Without a known mode the
        cache stays OFF until the next poll.
        """
        snapshot = reconciler.snapshot
        last_mode = snapshot.climate.mode if snapshot.climate else None
        resumed = state_mapper.mode_to_target_state(last_mode)

        # Guard clause: no usable mode to resume
        if resumed == HeatingCoolingState.OFF:
            return

        snapshot.target_heating_cooling_state = resumed
        logger.info(
            "target_state_resumed",
            device=reconciler.device.name,
            target_state=resumed.name
        )

    async def set_mode(
        self,
        device_id: str,
        requested_target_state: HeatingCoolingState
    ) -> HeatingCoolingState:
        """
        Change the target heating/cooling state of a pod.

        Args:
            device_id: Sensibo pod ID
            requested_target_state: OFF, HEAT, COOL or AUTO

        Returns:
            The new cached target state

        Raises:
            UnknownDeviceError: If the pod is not registered
            TransportError: If the command fails (cache unchanged)
        """
        reconciler = self._reconciler(device_id)
        snapshot = reconciler.snapshot
        requested = HeatingCoolingState(requested_target_state)

        command = state_mapper.target_state_to_vendor_command(
            requested,
            snapshot.target_temperature
        )

        try:
            await self.client.set_climate_state(device_id, command)
        except Exception as e:
            logger.error(
                f"Error sending command to {reconciler.device.name}",
                ac_state=command.to_payload(),
                error=str(e)
            )
            raise

        snapshot.target_heating_cooling_state = requested
        if requested != HeatingCoolingState.OFF:
            # Cached temperature went out with this command
            snapshot.pending_target_temperature = None
        logger.info(
            "target_state_set",
            device=reconciler.device.name,
            target_state=requested.name
        )
        return requested

    async def set_target_temperature(self, device_id: str, requested_value: float) -> int:
        """
        Change the target temperature of a pod.

        The value is clamped to [16, 30] before anything is sent.

        Args:
            device_id: Sensibo pod ID
            requested_value: Requested temperature in Celsius

        Returns:
            The new cached target temperature

        Raises:
            UnknownDeviceError: If the pod is not registered
            TransportError: If the command fails (cache unchanged)
        """
        reconciler = self._reconciler(device_id)
        snapshot = reconciler.snapshot
        value = state_mapper.clamp_target_temperature(
            requested_value,
            default=snapshot.target_temperature
        )

        is_off = snapshot.target_heating_cooling_state == HeatingCoolingState.OFF

        # Guard clause: unit is off, keep the value for the next mode change
        if is_off and not self.forward_temperature_while_off:
            snapshot.target_temperature = value
            snapshot.pending_target_temperature = value
            logger.info(
                "target_temperature_cached_while_off",
                device=reconciler.device.name,
                target_temperature=value
            )
            return value

        command = VendorCommand(target_temperature=value)
        if self.force_power_on_with_temperature:
            command.on = True

        try:
            await self.client.set_climate_state(device_id, command)
        except Exception as e:
            logger.error(
                f"Error sending command to {reconciler.device.name}",
                ac_state=command.to_payload(),
                error=str(e)
            )
            raise

        snapshot.target_temperature = value
        snapshot.pending_target_temperature = None
        if command.on and is_off:
            self._resume_last_mode(reconciler)
        logger.info(
            "target_temperature_set",
            device=reconciler.device.name,
            target_temperature=value
        )
        return value
