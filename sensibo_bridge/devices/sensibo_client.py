"""
Sensibo API client for AC pod telemetry and control.

Authenticates with an API key query parameter on every request.
Keeps no cache: the fleet scheduler's cadence is the rate limit.
"""

from dataclasses import replace
from typing import Optional, Dict, List, Any

import httpx

from sensibo_bridge.devices.base import RemoteClient
from sensibo_bridge.errors import AuthError, StateUnavailable, TransportError
from sensibo_bridge.models.device import ClimateState, Device, MeasuredState, VendorCommand
from sensibo_bridge.utils.logging import get_logger
from sensibo_bridge.utils.text_utils import sanitize_device_name

logger = get_logger(__name__)


class SensiboClient(RemoteClient):
    """
    Sensibo API client for AC pods.

    Features:
    - API key authentication (apiKey query parameter)
    - Pod discovery with room/model/firmware metadata
    - Latest measurement and AC state reads
    - Partial AC state writes
    - 401/403 → AuthError, 429/5xx/network → TransportError (no retries)
    """

    BASE_URL = "https://home.sensibo.com/api/v2"
    DEFAULT_TIMEOUT = 10.0

    AUTH_ERROR_CODES = {401, 403}

    SIM_DEVICES = [
        {
            "id": "sim-living",
            "room": {"name": "Living Room"},
            "productModel": "skyv2",
            "firmwareVersion": "SKY30046",
        },
        {
            "id": "sim-bedroom",
            "room": {"name": "Bedroom"},
            "productModel": "skyv2",
            "firmwareVersion": "SKY30046",
        },
        {
            "id": "sim-office",
            "room": {"name": "Office"},
            "productModel": "airq",
            "firmwareVersion": "SKY30046",
        },
    ]

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        sim_mode: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Sensibo client.

        Args:
            api_key: Sensibo API key (https://home.sensibo.com/me/api)
            base_url: API root, without trailing slash
            timeout: Per-request timeout in seconds
            sim_mode: If True, don't make real API calls
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        super().__init__(sim_mode)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        # Fake per-pod AC state for sim mode
        self._sim_ac_states: Dict[str, Dict[str, Any]] = {
            d["id"]: {"on": True, "mode": "cool", "targetTemperature": 22}
            for d in self.SIM_DEVICES
        }

    async def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Make an authenticated request to the Sensibo API.

        Error handling:
        - 401/403: AuthError (credential rejected, no retry)
        - 429: TransportError immediately (rate limited)
        - Other non-2xx or network failure: TransportError
        - Body that is not a JSON object: TransportError

        Args:
            method: HTTP method
            path: API path (e.g., "/users/me/pods")
            params: Extra query parameters
            json: JSON body

        Returns:
            Decoded JSON body

        Raises:
            AuthError: On 401/403
            TransportError: On any other failure
        """
        url = f"{self.base_url}{path}"
        query = {"apiKey": self.api_key}
        if params:
            query.update(params)

        headers = {"Accept-Encoding": "gzip"}
        if json is not None:
            headers["Content-Type"] = "application/json"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    params=query,
                    json=json,
                    headers=headers
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Sensibo request failed ({method} {path}): {e}") from e

        if response.status_code in self.AUTH_ERROR_CODES:
            logger.error("sensibo_auth_failed", status=response.status_code, path=path)
            raise AuthError(
                f"Sensibo rejected the API key (HTTP {response.status_code}) - check API key",
                status_code=response.status_code
            )

        if response.status_code == 429:
            # Rate limited - fail immediately, the next cycle retries
            logger.error("sensibo_rate_limited", path=path)
            raise TransportError("Sensibo API rate limited (429)", status_code=429)

        if response.status_code >= 400:
            raise TransportError(
                f"Sensibo API returned HTTP {response.status_code} for {method} {path}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from Sensibo ({method} {path}): {e}") from e

        if not isinstance(data, dict):
            raise TransportError(
                f"Unexpected response shape from Sensibo ({method} {path}): "
                f"expected an object, got {type(data).__name__}"
            )
        return data

    @staticmethod
    def _result_rows(data: Dict[str, Any]) -> List[Any]:
        """
        Return the rows of a {"result": [...]} envelope.

        Raises:
            TransportError: If the envelope has no result list
        """
        result = data.get("result")
        if not isinstance(result, list):
            raise TransportError(
                f"Unexpected response shape from Sensibo: result is {type(result).__name__}, not a list"
            )
        return result

    @classmethod
    def _first_result(cls, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Return the first row of the envelope, None if there are no rows."""
        rows = cls._result_rows(data)
        if not rows:
            return None
        if not isinstance(rows[0], dict):
            raise TransportError("Unexpected response shape from Sensibo: result row is not an object")
        return rows[0]

    async def list_devices(self) -> List[Device]:
        """
        List all pods on the account.

        Returns:
            Devices in API order (this is the polling order)
        """
        if self.sim_mode:
            logger.info("[SIM] Listing Sensibo devices")
            return [Device.from_api(d) for d in self.SIM_DEVICES]

        data = await self._make_request("GET", "/users/me/pods", params={"fields": "*"})
        pods = self._result_rows(data)

        devices = []
        for pod in pods:
            try:
                device = Device.from_api(pod)
            except (AttributeError, KeyError, TypeError) as e:
                logger.warning("sensibo_pod_skipped", error=str(e))
                continue
            devices.append(replace(device, name=sanitize_device_name(device.name)))

        logger.info(f"Found {len(devices)} Sensibo device(s)")
        return devices

    async def get_latest_measurement(self, device_id: str) -> MeasuredState:
        """
        Get the latest temperature/humidity reading for a pod.

        Args:
            device_id: Sensibo pod ID

        Returns:
            MeasuredState

        Raises:
            StateUnavailable: If the pod has no measurement rows
        """
        if self.sim_mode:
            return MeasuredState(temperature=22.5, humidity=45)

        data = await self._make_request("GET", f"/pods/{device_id}/measurements")
        row = self._first_result(data)

        # Guard clause: no reading yet
        if not row:
            raise StateUnavailable(f"No measurement available for {device_id}")

        return MeasuredState.from_api(row)

    async def get_latest_climate_state(self, device_id: str) -> ClimateState:
        """
        Get the latest AC state for a pod.

        Args:
            device_id: Sensibo pod ID

        Returns:
            ClimateState

        Raises:
            StateUnavailable: If the pod has no AC state rows
        """
        if self.sim_mode:
            return ClimateState.from_api(self._sim_ac_states.get(device_id, {}))

        data = await self._make_request(
            "GET",
            f"/pods/{device_id}/acStates",
            params={"limit": 1}
        )
        row = self._first_result(data)

        # Guard clause: no AC state yet
        if not row or not row.get("acState"):
            raise StateUnavailable(f"No AC state available for {device_id}")

        if not isinstance(row["acState"], dict):
            raise TransportError("Unexpected response shape from Sensibo: acState is not an object")

        return ClimateState.from_api(row["acState"])

    async def set_climate_state(self, device_id: str, command: VendorCommand) -> bool:
        """
        Send a partial AC state to a pod.

        Args:
            device_id: Sensibo pod ID
            command: Fields to change

        Returns:
            True on success (failures raise)
        """
        payload = command.to_payload()

        if self.sim_mode:
            logger.info("[SIM] Sensibo set_climate_state", device=device_id, ac_state=payload)
            self._sim_ac_states.setdefault(device_id, {}).update(payload)
            return True

        await self._make_request(
            "POST",
            f"/pods/{device_id}/acStates",
            json={"acState": payload}
        )

        logger.info("sensibo_command_sent", device=device_id, ac_state=payload)
        return True
