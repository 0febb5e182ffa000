"""
FastAPI application for the Sensibo climate bridge.
Discovers pods on startup and keeps their accessories reconciled.
"""

import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sensibo_bridge.config import load_config
from sensibo_bridge.services.bridge import Bridge
from sensibo_bridge.utils.logging import setup_logging, get_logger
from sensibo_bridge.routes import (
    accessories,
    health,
    test_connections
)

VERSION = "1.0.0"

# Load environment variables
load_dotenv()

# Setup logging
setup_logging()
log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Startup: load config, discover pods, start the fleet scheduler.
    Shutdown: cancel pending cycles and close the client.
    """
    config = load_config()
    if config.debug:
        setup_logging(debug=True)

    log.info("bridge_starting", version=VERSION, sim_mode=config.sim_mode)

    bridge = Bridge.from_config(config)
    await bridge.discover()
    bridge.start()
    app.state.bridge = bridge

    log.info("bridge_ready", accessories=len(bridge.registry.all()))

    yield

    log.info("bridge_shutting_down")
    await bridge.stop()
    app.state.bridge = None
    log.info("bridge_stopped")


app = FastAPI(
    title="Sensibo Climate Bridge",
    version=VERSION,
    description="Exposes Sensibo AC pods as thermostat and humidity sensor accessories",
    lifespan=lifespan
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert Pydantic validation errors to clean, user-friendly messages.
    """
    error_messages = []
    for error in exc.errors():
        loc = error.get("loc", [])
        field = " -> ".join(str(l) for l in loc if l != "body")
        msg = error.get("msg", "Invalid value")
        error_messages.append(f"{field}: {msg}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation failed",
            "details": error_messages
        }
    )


app.include_router(accessories.router, tags=["Accessories"])
app.include_router(health.router, tags=["Health"])
app.include_router(test_connections.router, tags=["Testing"])


@app.get("/healthz")
async def healthz():
    """
    Liveness check.
    No authentication required.
    """
    return {"ok": True}


@app.get("/")
async def root():
    """
    Root endpoint - basic info.
    """
    return {
        "ok": True,
        "name": "Sensibo Climate Bridge",
        "version": VERSION,
        "status": "operational"
    }


def run() -> None:
    """
    Serve the bridge with uvicorn.

    Bind address comes from HOST (default 0.0.0.0) and PORT (default 8000).
    """
    uvicorn.run(
        "sensibo_bridge.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None
    )


if __name__ == "__main__":
    run()
