"""Hosts the one active run of this process behind the HTTP API.

The device drives the run: it reports permission results and pushes the fixes
it acquires, and it asks for confirmation on its own screen before calling
stop or discard. The host wires those requests into a `RunTrackingEngine`.
"""

import logging
import os
from dataclasses import dataclass, field

from pacer.db.adapters import DbSettingsProvider, PostgresRunRepository
from pacer.integrations.gpsd import GpsdConfig, GpsdLocationProvider
from pacer.integrations.open_meteo import OpenMeteoClient
from pacer.integrations.open_meteo.client import DEFAULT_BASE_URL
from pacer.integrations.webhook import WebhookNotificationSink
from pacer.load.weather import WeatherRecorder
from pacer.models import LocationSample, RunConfig
from pacer.tracking import (
    EngineTimings,
    InMemoryNotificationSink,
    LocationStream,
    PollingLocationStream,
    Prompt,
    PushLocationStream,
    RunRepository,
    RunState,
    RunTrackingEngine,
    SettingsProvider,
    WeatherService,
)
from pacer.tracking.engine import Clock, wall_clock_millis
from pacer.tracking.state import TERMINAL_STATES

logger = logging.getLogger(__name__)


class NoActiveRun(Exception):
    pass


class RunAlreadyActive(Exception):
    pass


@dataclass
class MessageBoard:
    """Prompter for a remote device.

    Confirmations were already given on the device before the request was
    made, so `confirm` always agrees. Alerts are kept for the device to show.
    """

    alerts: list[Prompt] = field(default_factory=list)

    async def confirm(self, prompt: Prompt) -> bool:
        return True

    async def alert(self, prompt: Prompt) -> None:
        logger.info(f"Alert for device: {prompt.title}: {prompt.message}")
        self.alerts.append(prompt)


@dataclass
class ReportedPermissions:
    """Permission results as reported by the device when it starts a run."""

    foreground: bool = True
    background: bool = True

    async def request_foreground(self) -> bool:
        return self.foreground

    async def request_background(self) -> bool:
        return self.background


@dataclass
class ActiveRun:
    engine: RunTrackingEngine
    stream: LocationStream
    notifications: InMemoryNotificationSink
    prompter: MessageBoard


class ActiveRunHost:
    """Owns at most one live run at a time."""

    def __init__(
        self,
        repository: RunRepository,
        settings: SettingsProvider,
        weather: WeatherService | None = None,
        notify_webhook_url: str | None = None,
        gpsd_config: GpsdConfig | None = None,
        clock: Clock = wall_clock_millis,
        timings: EngineTimings | None = None,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self.weather = weather
        self.notify_webhook_url = notify_webhook_url
        self.gpsd_config = gpsd_config
        self.clock = clock
        self.timings = timings
        self.run: ActiveRun | None = None

    @classmethod
    def from_env(cls) -> "ActiveRunHost":
        """Build a host backed by Postgres, Open-Meteo and the optional integrations."""
        settings = DbSettingsProvider()
        weather = WeatherRecorder(
            OpenMeteoClient(base_url=os.getenv("OPEN_METEO_URL", DEFAULT_BASE_URL)),
            settings,
        )
        gpsd_host = os.getenv("PACER_GPSD_HOST")
        gpsd_config = None
        if gpsd_host:
            gpsd_config = GpsdConfig(
                host=gpsd_host, port=int(os.getenv("PACER_GPSD_PORT", "2947"))
            )
        return cls(
            repository=PostgresRunRepository(),
            settings=settings,
            weather=weather,
            notify_webhook_url=os.getenv("PACER_NOTIFY_WEBHOOK_URL") or None,
            gpsd_config=gpsd_config,
        )

    @property
    def is_live(self) -> bool:
        return self.run is not None and self.run.engine.state not in TERMINAL_STATES

    def current(self) -> ActiveRun:
        """Get the current run, finished or not.

        Raises:
            NoActiveRun: If no run was started yet.
        """
        if self.run is None:
            raise NoActiveRun("No run has been started")
        return self.run

    async def start(
        self,
        config: RunConfig,
        permissions: ReportedPermissions,
        initial_fix: LocationSample | None = None,
    ) -> ActiveRun:
        """Start a new run, replacing the previous one if it has ended.

        Raises:
            RunAlreadyActive: If a run is still being tracked or saved.
        """
        if self.is_live:
            raise RunAlreadyActive("A run is already in progress")
        if self.run is not None:
            await self._release(self.run)

        notifications = self._notification_sink()
        prompter = MessageBoard()
        stream = self._location_stream(initial_fix)
        engine = RunTrackingEngine(
            location_stream=stream,
            permissions=permissions,
            repository=self.repository,
            settings=self.settings,
            notifications=notifications,
            prompter=prompter,
            weather=self.weather,
            clock=self.clock,
            timings=self.timings,
        )
        self.run = ActiveRun(
            engine=engine,
            stream=stream,
            notifications=notifications,
            prompter=prompter,
        )
        started = await engine.start(config)
        if started:
            logger.info(f"Started {config.kind} run")
        else:
            logger.warning(f"Run did not start: {engine.last_error}")
        return self.run

    async def shutdown(self) -> None:
        """Discard a run still being tracked and wait for pending work."""
        if self.run is None:
            return
        engine = self.run.engine
        if engine.state in (RunState.ACTIVE, RunState.PAUSED, RunState.INITIALIZING):
            logger.warning("Shutting down with a run in progress, discarding it")
            await engine.abort()
        await engine.wait_closed()
        await self._release(self.run)

    async def _release(self, run: ActiveRun) -> None:
        stream = run.stream
        if isinstance(stream, PollingLocationStream) and isinstance(
            stream.provider, GpsdLocationProvider
        ):
            await stream.provider.close()

    def _notification_sink(self) -> InMemoryNotificationSink:
        if self.notify_webhook_url:
            return WebhookNotificationSink(self.notify_webhook_url)
        return InMemoryNotificationSink()

    def _location_stream(self, initial_fix: LocationSample | None) -> LocationStream:
        if self.gpsd_config is not None:
            return PollingLocationStream(GpsdLocationProvider(self.gpsd_config))
        return PushLocationStream(initial_fix=initial_fix)
