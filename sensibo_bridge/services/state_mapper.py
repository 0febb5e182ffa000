"""
State mapper - translates Sensibo AC state to accessory characteristics.

Pure functions with no I/O. Every input is defaulted or clamped, never
rejected, so none of these functions raise.
"""

import math
from typing import Any, Optional, Tuple

from sensibo_bridge.models.device import HeatingCoolingState, VendorCommand

# Accessory characteristic ranges
CURRENT_TEMPERATURE_MIN = -40.0
CURRENT_TEMPERATURE_MAX = 100.0
TARGET_TEMPERATURE_MIN = 16
TARGET_TEMPERATURE_MAX = 30
HUMIDITY_MIN = 0.0
HUMIDITY_MAX = 100.0

DEFAULT_TEMPERATURE = 20
DEFAULT_HUMIDITY = 50

# Half-width of the idle window around the target in auto mode
AUTO_DEADBAND_C = 1.0

_MODE_TO_TARGET = {
    "cool": HeatingCoolingState.COOL,
    "heat": HeatingCoolingState.HEAT,
    "auto": HeatingCoolingState.AUTO,
}

_TARGET_TO_MODE = {
    HeatingCoolingState.HEAT: "heat",
    HeatingCoolingState.COOL: "cool",
    HeatingCoolingState.AUTO: "auto",
}


def _to_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None if missing/non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def clamp_current_temperature(value: Any, default: float = DEFAULT_TEMPERATURE) -> float:
    """
    Clamp an ambient temperature reading to the accessory range.

    Args:
        value: Raw temperature from the API (may be None or garbage)
        default: Value returned when the reading is unusable

    Returns:
        Temperature in [-40, 100]
    """
    number = _to_number(value)
    if number is None:
        return default
    return _clamp(number, CURRENT_TEMPERATURE_MIN, CURRENT_TEMPERATURE_MAX)


def clamp_target_temperature(value: Any, default: int = DEFAULT_TEMPERATURE) -> int:
    """
    Clamp a target temperature to the accessory range in 1°C steps.

    The pod may support a wider range internally; the accessory only
    represents [16, 30].

    Args:
        value: Raw target temperature
        default: Value returned when the input is unusable

    Returns:
        Integer temperature in [16, 30]

    Examples:
        >>> clamp_target_temperature(35)
        30
        >>> clamp_target_temperature(None)
        20
    """
    number = _to_number(value)
    if number is None:
        return default
    return int(_clamp(round(number), TARGET_TEMPERATURE_MIN, TARGET_TEMPERATURE_MAX))


def clamp_humidity(value: Any, default: float = DEFAULT_HUMIDITY) -> float:
    """Clamp relative humidity to [0, 100]; unusable input returns default."""
    number = _to_number(value)
    if number is None:
        return default
    return _clamp(number, HUMIDITY_MIN, HUMIDITY_MAX)


def mode_to_target_state(vendor_mode: Optional[str]) -> HeatingCoolingState:
    """
    Map a Sensibo mode string to a target heating/cooling state.

    Anything other than cool/heat/auto (including "off", "fan", "dry"
    and None) maps to OFF.
    """
    if not isinstance(vendor_mode, str):
        return HeatingCoolingState.OFF
    return _MODE_TO_TARGET.get(vendor_mode.lower(), HeatingCoolingState.OFF)


def reconcile_heating_cooling_pair(
    ac_on: bool,
    vendor_mode: Optional[str],
    current_temp: float,
    target_temp: float
) -> Tuple[HeatingCoolingState, HeatingCoolingState]:
    """
    Derive (current, target) heating/cooling states from AC state.

    Args:
        ac_on: Power flag from acState
        vendor_mode: Mode string from acState
        current_temp: Ambient temperature (already clamped)
        target_temp: Target temperature (already clamped)

    Returns:
        Tuple of (current_state, target_state). current is never AUTO.
    """
    # Guard clause: power off overrides any stale mode
    if not ac_on:
        return HeatingCoolingState.OFF, HeatingCoolingState.OFF

    target = mode_to_target_state(vendor_mode)

    if target in (HeatingCoolingState.COOL, HeatingCoolingState.HEAT):
        return target, target

    if target == HeatingCoolingState.AUTO:
        if current_temp < target_temp - AUTO_DEADBAND_C:
            return HeatingCoolingState.HEAT, target
        if current_temp > target_temp + AUTO_DEADBAND_C:
            return HeatingCoolingState.COOL, target
        return HeatingCoolingState.OFF, target

    # Unrecognised mode while on (fan, dry, ...)
    return HeatingCoolingState.OFF, HeatingCoolingState.OFF


def target_state_to_vendor_command(
    target_state: HeatingCoolingState,
    cached_target_temperature: int
) -> VendorCommand:
    """
    Build the Sensibo command for a requested target state.

    OFF only switches power off; every other state powers on with the
    matching mode and the cached target temperature.
    """
    mode = _TARGET_TO_MODE.get(target_state)
    if mode is None:
        return VendorCommand(on=False)

    return VendorCommand(
        on=True,
        mode=mode,
        target_temperature=clamp_target_temperature(cached_target_temperature)
    )
