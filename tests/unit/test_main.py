"""
Tests for the uvicorn entry point.
"""

import os
from unittest.mock import patch

from sensibo_bridge.main import run


def test_run_defaults():
    with patch.dict(os.environ, {}, clear=True), patch("sensibo_bridge.main.uvicorn.run") as serve:
        run()

    serve.assert_called_once_with(
        "sensibo_bridge.main:app",
        host="0.0.0.0",
        port=8000,
        log_config=None
    )


def test_run_reads_bind_address_from_environment():
    env = {"HOST": "127.0.0.1", "PORT": "8581"}
    with patch.dict(os.environ, env, clear=True), patch("sensibo_bridge.main.uvicorn.run") as serve:
        run()

    _, kwargs = serve.call_args
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 8581
