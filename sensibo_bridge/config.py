"""
Configuration management for the Sensibo bridge.
Loads config from environment variables with config.json fallback.
"""

import json
import os
from typing import Any, Dict, Optional

from sensibo_bridge.models.config import BridgeConfig
from sensibo_bridge.utils.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = "config.json"

# Environment variable → config field
ENV_OVERRIDES = {
    "SENSIBO_API_KEY": "api_key",
    "POLLING_INTERVAL": "polling_interval",
    "DEBUG": "debug",
    "SIM_MODE": "sim_mode",
}


def default_config_path() -> str:
    """config.json path from BRIDGE_CONFIG_PATH, else the project root."""
    config_dir = os.getenv("BRIDGE_CONFIG_PATH") or os.path.dirname(os.path.dirname(__file__))
    return os.path.join(config_dir, CONFIG_FILENAME)


def _env_overrides() -> Dict[str, Any]:
    """Collect config values set in the environment."""
    values: Dict[str, Any] = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        if field_name in ("debug", "sim_mode"):
            values[field_name] = raw.lower() == "true"
        else:
            values[field_name] = raw
    return values


def load_config(filepath: Optional[str] = None) -> BridgeConfig:
    """
    Load configuration from environment and config file.

    Priority:
    1. Environment variables (SENSIBO_API_KEY, POLLING_INTERVAL, DEBUG, SIM_MODE)
    2. config.json (BRIDGE_CONFIG_PATH directory or project root)
    3. Model defaults

    Args:
        filepath: Explicit config.json path

    Returns:
        Validated BridgeConfig instance

    Raises:
        ValueError: If no API key is configured or validation fails
    """
    path = filepath or default_config_path()
    data: Dict[str, Any] = {}
    if os.path.exists(path):
        with open(path, 'r') as f:
            data = json.load(f)
        logger.debug("config_file_loaded", path=path)

    data.update(_env_overrides())

    if not data.get("api_key"):
        raise ValueError(
            "API Key is required. Get yours from https://home.sensibo.com/me/api "
            "and set SENSIBO_API_KEY"
        )

    return BridgeConfig(**data)


def load_config_from_file(filepath: str) -> BridgeConfig:
    """
    Load and validate configuration from a JSON file only.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If validation fails
    """
    with open(filepath, 'r') as f:
        config_data = json.load(f)

    return BridgeConfig(**config_data)


def write_config_from_env(config_dir: Optional[str] = None) -> str:
    """
    Write config.json from environment variables for cloud deployment.

    Reads SENSIBO_API_KEY (required), POLLING_INTERVAL (default 30) and
    DEBUG. Target directory: config_dir > BRIDGE_CONFIG_PATH > ~/.sensibo-bridge.

    Returns:
        Path of the written file

    Raises:
        ValueError: If SENSIBO_API_KEY is not set
    """
    api_key = os.getenv("SENSIBO_API_KEY")
    if not api_key:
        raise ValueError("SENSIBO_API_KEY environment variable is required")

    try:
        polling_interval = int(os.getenv("POLLING_INTERVAL", ""))
    except ValueError:
        polling_interval = 30

    config = BridgeConfig(
        api_key=api_key,
        polling_interval=polling_interval,
        debug=os.getenv("DEBUG", "false").lower() == "true"
    )

    target_dir = (
        config_dir
        or os.getenv("BRIDGE_CONFIG_PATH")
        or os.path.join(os.path.expanduser("~"), ".sensibo-bridge")
    )
    os.makedirs(target_dir, exist_ok=True)

    path = os.path.join(target_dir, CONFIG_FILENAME)
    with open(path, 'w') as f:
        f.write(config.model_dump_json(indent=2))

    logger.info("config_written", path=path)
    return path


if __name__ == "__main__":
    print(f"Configuration written to: {write_config_from_env()}")
