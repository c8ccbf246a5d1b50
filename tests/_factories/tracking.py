"""In-memory collaborators for driving a RunTrackingEngine in tests."""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable

from pacer.models import CompletedRun, LocationSample
from pacer.tracking import Prompt


class FakeClock:
    def __init__(self, millis: int = 1_700_000_000_000):
        self.millis = millis

    def __call__(self) -> int:
        return self.millis

    def advance(self, seconds: float) -> None:
        self.millis += int(seconds * 1000)


class FakePrompter:
    def __init__(self, confirm_result: bool = True):
        self.confirm_result = confirm_result
        self.confirms: list[Prompt] = []
        self.alerts: list[Prompt] = []
        # Runs while a confirmation is "on screen".
        self.during_confirm: Callable[[], Awaitable[None]] | None = None

    async def confirm(self, prompt: Prompt) -> bool:
        self.confirms.append(prompt)
        if self.during_confirm is not None:
            await self.during_confirm()
        return self.confirm_result

    async def alert(self, prompt: Prompt) -> None:
        self.alerts.append(prompt)


class FakePermissions:
    def __init__(self, foreground: bool = True, background: bool = True):
        self.foreground = foreground
        self.background = background
        self.requests: list[str] = []

    async def request_foreground(self) -> bool:
        self.requests.append("foreground")
        return self.foreground

    async def request_background(self) -> bool:
        self.requests.append("background")
        return self.background


class FakeRepository:
    def __init__(
        self,
        failures: int = 0,
        next_id: int = 1,
        gate: asyncio.Event | None = None,
    ):
        self.failures = failures
        self.next_id = next_id
        # When set, saves block until the event fires.
        self.gate = gate
        self.calls: list[CompletedRun] = []
        self.saved: dict[int, CompletedRun] = {}

    async def save_completed_run(self, run: CompletedRun) -> int:
        self.calls.append(run)
        if self.gate is not None:
            await self.gate.wait()
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("database is down")
        run_id = self.next_id
        self.next_id += 1
        self.saved[run_id] = run
        return run_id


class FakeSettings:
    def __init__(
        self,
        gps_interval_seconds: int = 5,
        weather_tracking_enabled: bool = False,
        use_metric_units: bool = False,
    ):
        self.gps_interval_seconds = gps_interval_seconds
        self.weather_tracking_enabled = weather_tracking_enabled
        self.use_metric_units = use_metric_units

    async def get_gps_interval_seconds(self) -> int:
        return self.gps_interval_seconds

    async def get_weather_tracking_enabled(self) -> bool:
        return self.weather_tracking_enabled

    async def get_use_metric_units(self) -> bool:
        return self.use_metric_units


class FakeWeather:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[int, LocationSample, datetime]] = []

    async def fetch_and_attach_weather(
        self, run_id: int, coordinate: LocationSample, ended_at: datetime
    ) -> int:
        self.calls.append((run_id, coordinate, ended_at))
        if self.error is not None:
            raise self.error
        return 99
