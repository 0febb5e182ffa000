"""
Device reconciler - one read/compute/notify pass per Sensibo pod.

Owns the pod's ReconciledSnapshot. Fetch failures leave the snapshot
untouched: stale-but-valid state is preferred over no state.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sensibo_bridge.accessories.base import AccessorySink
from sensibo_bridge.devices.base import RemoteClient
from sensibo_bridge.errors import AuthError, StateUnavailable
from sensibo_bridge.models.device import (
    ClimateState,
    Device,
    HeatingCoolingState,
    MeasuredState,
    ReconciledSnapshot,
)
from sensibo_bridge.services import state_mapper
from sensibo_bridge.utils.logging import get_logger

logger = get_logger(__name__)

# Vendor-side jitter below these deltas is not worth a characteristic update
TEMPERATURE_NOISE_C = 0.1
HUMIDITY_NOISE_PCT = 1.0

CURRENT_TEMPERATURE = "current_temperature"
CURRENT_RELATIVE_HUMIDITY = "current_relative_humidity"
TARGET_TEMPERATURE = "target_temperature"
CURRENT_HEATING_COOLING_STATE = "current_heating_cooling_state"
TARGET_HEATING_COOLING_STATE = "target_heating_cooling_state"


class ReconcilerState(Enum):
    """Reconciliation state machine."""
    IDLE = "idle"
    RECONCILING = "reconciling"


def _exceeds(new: float, old: float, threshold: float) -> bool:
    # Rounded so that 20.1 - 20.0 counts as exactly 0.1
    return round(abs(new - old), 6) > threshold


class DeviceReconciler:
    """
    Reconciles one pod's remote state into its accessory characteristics.

    Handles:
    - Overlap guard (one pass in flight per pod, extra triggers are dropped)
    - Independent measurement and AC state reads
    - Noise suppression for temperature/humidity
    - Change notifications through the AccessorySink
    """

    def __init__(
        self,
        device: Device,
        client: RemoteClient,
        sink: AccessorySink,
        snapshot: Optional[ReconciledSnapshot] = None
    ):
        """
        Initialize device reconciler.

        Args:
            device: Pod being reconciled
            client: Remote API client
            sink: Receiver for characteristic change notifications
            snapshot: Initial snapshot (defaults when omitted)
        """
        self.device = device
        self.client = client
        self.sink = sink
        self.snapshot = snapshot or ReconciledSnapshot()
        self.state = ReconcilerState.IDLE

    @property
    def is_reconciling(self) -> bool:
        return self.state == ReconcilerState.RECONCILING

    async def reconcile(self) -> List[str]:
        """
        Run one reconciliation pass.

        Returns:
            Names of the snapshot fields that changed (empty if the pass was
            skipped because another one is in flight)
        """
        # Guard clause: pass already in flight for this pod
        if self.is_reconciling:
            logger.debug("reconcile_skipped_in_flight", device=self.device.name)
            return []

        self.state = ReconcilerState.RECONCILING
        try:
            measured = await self._fetch_measurement()
            climate = await self._fetch_climate_state()

            changed: List[str] = []
            if measured is not None:
                changed.extend(self._apply_measurement(measured))
            if climate is not None:
                changed.extend(self._apply_climate_state(climate))

            self._notify(changed)

            if changed:
                logger.info("device_reconciled", device=self.device.name, changed=changed)
            return changed
        finally:
            self.state = ReconcilerState.IDLE

    async def _fetch_measurement(self) -> Optional[MeasuredState]:
        try:
            return await self.client.get_latest_measurement(self.device.id)
        except Exception as e:
            self._log_fetch_failure("measurement", e)
            return None

    async def _fetch_climate_state(self) -> Optional[ClimateState]:
        try:
            return await self.client.get_latest_climate_state(self.device.id)
        except Exception as e:
            self._log_fetch_failure("ac_state", e)
            return None

    def _log_fetch_failure(self, what: str, error: Exception) -> None:
        if isinstance(error, StateUnavailable):
            logger.info("device_state_unavailable", device=self.device.name, read=what)
        elif isinstance(error, AuthError):
            logger.error(
                "device_read_unauthorized",
                device=self.device.name,
                read=what,
                error=str(error),
                hint="check API key"
            )
        else:
            logger.error(
                f"Error updating device state for {self.device.name}",
                read=what,
                error=str(error)
            )

    def _apply_measurement(self, measured: MeasuredState) -> List[str]:
        """Fold a measurement into the snapshot, returning changed fields."""
        snapshot = self.snapshot
        first_reading = snapshot.measured is None
        changed = []

        temperature = state_mapper.clamp_current_temperature(measured.temperature)
        if first_reading or _exceeds(temperature, snapshot.current_temperature, TEMPERATURE_NOISE_C):
            if temperature != snapshot.current_temperature:
                changed.append(CURRENT_TEMPERATURE)
            snapshot.current_temperature = temperature

        humidity = state_mapper.clamp_humidity(measured.humidity)
        if first_reading or _exceeds(humidity, snapshot.current_relative_humidity, HUMIDITY_NOISE_PCT):
            if humidity != snapshot.current_relative_humidity:
                changed.append(CURRENT_RELATIVE_HUMIDITY)
            snapshot.current_relative_humidity = humidity

        snapshot.measured = measured
        snapshot.last_measured_at = datetime.now(timezone.utc)
        return changed

    def _apply_climate_state(self, climate: ClimateState) -> List[str]:
        """Fold an AC state into the snapshot, returning changed fields."""
        snapshot = self.snapshot
        changed = []

        target_temperature = state_mapper.clamp_target_temperature(climate.target_temperature)
        current_state, target_state = state_mapper.reconcile_heating_cooling_pair(
            climate.on,
            climate.mode,
            snapshot.current_temperature,
            target_temperature
        )

        if snapshot.pending_target_temperature is not None:
            if target_state == HeatingCoolingState.OFF:
                # Still off: the locally chosen value wins over the device's
                target_temperature = snapshot.pending_target_temperature
            else:
                # Switched on elsewhere, the device value is authoritative again
                logger.info(
                    "pending_target_temperature_dropped",
                    device=self.device.name,
                    pending=snapshot.pending_target_temperature,
                    remote=target_temperature
                )
                snapshot.pending_target_temperature = None

        if target_temperature != snapshot.target_temperature:
            snapshot.target_temperature = target_temperature
            changed.append(TARGET_TEMPERATURE)

        if current_state != snapshot.current_heating_cooling_state:
            snapshot.current_heating_cooling_state = current_state
            changed.append(CURRENT_HEATING_COOLING_STATE)
        if target_state != snapshot.target_heating_cooling_state:
            snapshot.target_heating_cooling_state = target_state
            changed.append(TARGET_HEATING_COOLING_STATE)

        snapshot.climate = climate
        snapshot.last_climate_at = datetime.now(timezone.utc)
        return changed

    def _notify(self, changed: List[str]) -> None:
        """Push every changed characteristic to the sink."""
        device_id = self.device.id
        snapshot = self.snapshot
        for name in changed:
            if name == CURRENT_TEMPERATURE:
                self.sink.update_current_temperature(device_id, snapshot.current_temperature)
            elif name == CURRENT_RELATIVE_HUMIDITY:
                self.sink.update_current_relative_humidity(device_id, snapshot.current_relative_humidity)
            elif name == TARGET_TEMPERATURE:
                self.sink.update_target_temperature(device_id, snapshot.target_temperature)
            elif name == CURRENT_HEATING_COOLING_STATE:
                self.sink.update_current_heating_cooling_state(
                    device_id, snapshot.current_heating_cooling_state
                )
            elif name == TARGET_HEATING_COOLING_STATE:
                self.sink.update_target_heating_cooling_state(
                    device_id, snapshot.target_heating_cooling_state
                )
