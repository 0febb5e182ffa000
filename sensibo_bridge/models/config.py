"""
Pydantic models for bridge configuration.
Matches the structure of config.json.
"""

from pydantic import BaseModel, ConfigDict, Field


class BridgeConfig(BaseModel):
    """Top-level Sensibo bridge configuration."""
    model_config = ConfigDict(extra="allow")  # Forward compatibility

    api_key: str = Field(..., min_length=1, description="Sensibo API key")
    base_url: str = "https://home.sensibo.com/api/v2"

    polling_interval: float = Field(
        default=300.0,
        gt=0,
        description="Seconds between fleet reconciliation cycles (legacy profile: 30)"
    )
    initial_delay: float = Field(default=10.0, ge=0)
    inter_device_delay: float = Field(
        default=3.0,
        ge=0,
        description="Seconds between two pods in a cycle (rate limit)"
    )
    request_timeout: float = Field(default=10.0, gt=0)

    debug: bool = False
    sim_mode: bool = False

    # Target temperature command policy
    forward_temperature_while_off: bool = False
    force_power_on_with_temperature: bool = False
