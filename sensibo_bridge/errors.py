"""
Error taxonomy for the Sensibo bridge.

Reconciliation catches these at the per-device boundary.
Command paths let them propagate to the caller.
"""


class BridgeError(Exception):
    """Base class for all bridge errors."""


class TransportError(BridgeError):
    """Network or HTTP failure while talking to the Sensibo API."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(TransportError):
    """API key rejected by the Sensibo API (HTTP 401/403)."""


class StateUnavailable(BridgeError):
    """Sensibo returned no measurement or AC state row for the device yet."""


class ValidationError(BridgeError):
    """
    Invalid value supplied for a characteristic.

    Not raised by the mapping layer, which clamps instead of rejecting.
    """
