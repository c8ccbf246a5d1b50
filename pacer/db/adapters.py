"""Async adapters exposing the blocking psycopg functions to the tracking engine.

The engine runs on the event loop, so each call is pushed to the default
executor rather than blocking it.
"""

import asyncio
import logging
from functools import partial
from typing import Callable, TypeVar

from pacer.models import CompletedRun
from . import runs, settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _in_executor(fn: Callable[..., T], *args) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(fn, *args))


class PostgresRunRepository:
    async def save_completed_run(self, run: CompletedRun) -> int:
        return await _in_executor(runs.save_completed_run, run)


class DbSettingsProvider:
    async def get_gps_interval_seconds(self) -> int:
        return await _in_executor(settings.get_gps_interval_seconds)

    async def get_weather_tracking_enabled(self) -> bool:
        return await _in_executor(settings.get_weather_tracking_enabled)

    async def get_use_metric_units(self) -> bool:
        return await _in_executor(settings.get_use_metric_units)
