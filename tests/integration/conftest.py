"""
Fixtures for HTTP-level tests.
ASGITransport does not run the lifespan, so the bridge is attached by hand.
"""

import os
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio

from sensibo_bridge.devices.sensibo_client import SensiboClient
from sensibo_bridge.main import app
from sensibo_bridge.services.bridge import Bridge
from sensibo_bridge.services.scheduler import FleetScheduler

API_KEY = "test-key"


@pytest_asyncio.fixture
async def sim_bridge(fake_sleep):
    """Discovered sim-mode bridge; the scheduler is not started."""
    bridge = Bridge(
        SensiboClient(api_key="sim-key", sim_mode=True),
        fleet=FleetScheduler(sleep=fake_sleep)
    )
    await bridge.discover()
    return bridge


@pytest_asyncio.fixture
async def http_client(sim_bridge):
    app.state.bridge = sim_bridge
    with patch.dict(os.environ, {"BRIDGE_API_KEY": API_KEY}):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    app.state.bridge = None
