# This file loads env variables and must thus be imported before anything else.
from . import env_loader  # noqa: F401
from .env_loader import get_current_environment

import os
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Depends

from .auth import get_api_key, require_device_key
from .host import ActiveRunHost
from .models import EnvironmentResponse
from .routers import active_run_router, runs_router, settings_router

"""FastAPI application for the run tracker.

Exposes routes for driving the active run from a device, reading run history
and editing settings. This module configures logging and owns the run host
for the lifetime of the process.
"""

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Tests may install their own host before startup.
    if getattr(app.state, "host", None) is None:
        app.state.host = ActiveRunHost.from_env()
    if get_api_key() is None:
        logger.warning("PACER_API_KEY is not set; the API is unauthenticated")
    yield
    await app.state.host.shutdown()


app = FastAPI(lifespan=lifespan)
# The active run router goes first so /runs/active never matches /runs/{run_id}.
app.include_router(active_run_router)
app.include_router(runs_router)
app.include_router(settings_router)


# Configure basic logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s - %(filename)s:%(lineno)d",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Configure the logging for the tracker itself if the user specifies it.
if "LOG_LEVEL" in os.environ:
    match os.environ["LOG_LEVEL"].upper():
        case "DEBUG":
            log_level = logging.DEBUG
        case "INFO":
            log_level = logging.INFO
        case "WARNING":
            log_level = logging.WARNING
        case "ERROR":
            log_level = logging.ERROR
        case "CRITICAL":
            log_level = logging.CRITICAL
        case _:
            raise ValueError(f"Invalid log level: {os.environ['LOG_LEVEL']}")
    logging.getLogger("pacer").setLevel(log_level)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint. Needs no API key."""
    return {"status": "healthy"}


@app.get("/environment", response_model=EnvironmentResponse)
def get_environment(_: None = Depends(require_device_key)) -> EnvironmentResponse:
    """Get the current environment configuration."""
    environment = get_current_environment()
    return EnvironmentResponse(environment=environment)
