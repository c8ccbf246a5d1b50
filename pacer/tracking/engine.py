"""The run tracking engine.

One engine tracks one run: it requests permissions, consumes the location
stream, keeps the live metrics, decides when to auto-stop and hands the
finished run to persistence. All state changes happen on the event loop that
owns the engine, and every await is followed by a check that the state it
relied on still holds.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Any, Awaitable, Callable, Coroutine

from pacer.agg import pace
from pacer.models import CompletedRun, LocationSample, RunConfig
from pacer.models.settings import DEFAULT_GPS_INTERVAL_SECONDS, validate_gps_interval

from .collaborators import (
    BACKGROUND_PERMISSION_ALERT,
    END_RUN_PROMPT,
    EXIT_RUN_PROMPT,
    FOREGROUND_PERMISSION_ALERT,
    SAVE_FAILED_ALERT,
    TRACKING_RESUME_ALERT,
    TRACKING_START_ALERT,
    CallbackSubscription,
    NotificationAction,
    NotificationSink,
    PermissionGateway,
    Prompt,
    Prompter,
    RunRepository,
    SettingsProvider,
    Subscription,
    WeatherService,
)
from .errors import (
    PermissionDenied,
    PersistenceFailure,
    TrackingError,
    TrackingStartFailure,
    TransientSensorGap,
    WeatherFetchFailure,
)
from .location import LocationStream, TrackingMode
from .notifications import RUN_NOTIFICATION_ID, NotificationPayload, project
from .state import (
    LIVE_STATES,
    TERMINAL_STATES,
    EventListener,
    RunEvent,
    RunEventKind,
    RunSession,
    RunSnapshot,
    RunState,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_millis() -> int:
    return time.time_ns() // 1_000_000


def _to_datetime(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class EngineTimings:
    tick_seconds: float = 0.1
    # Best-effort refresh; state changes update the notification right away.
    notification_refresh_seconds: float = 5.0


class RunTrackingEngine:
    """Lifecycle state machine for a single run.

    idle → initializing → active ⇄ paused → finalizing → completed, with
    aborted reachable from every state before completion.
    """

    def __init__(
        self,
        *,
        location_stream: LocationStream,
        permissions: PermissionGateway,
        repository: RunRepository,
        settings: SettingsProvider,
        notifications: NotificationSink,
        prompter: Prompter,
        weather: WeatherService | None = None,
        clock: Clock = wall_clock_millis,
        timings: EngineTimings | None = None,
    ) -> None:
        self._location_stream = location_stream
        self._permissions = permissions
        self._repository = repository
        self._settings = settings
        self._notifications = notifications
        self._prompter = prompter
        self._weather = weather
        self._clock = clock
        self._timings = timings or EngineTimings()

        self._state = RunState.IDLE
        self._config: RunConfig | None = None
        self._session: RunSession | None = None
        self._completed: CompletedRun | None = None
        self._final_metrics: tuple[int, float, int] | None = None
        self.run_id: int | None = None
        self.last_error: TrackingError | None = None
        self.gps_interval_seconds = DEFAULT_GPS_INTERVAL_SECONDS

        self._foreground = True
        self._notifications_enabled = False
        self._notification_shown = False
        self._action_subscription: Subscription | None = None
        self._timer_task: asyncio.Task[None] | None = None
        self._refresh_task: asyncio.Task[None] | None = None
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._finalize_lock = asyncio.Lock()
        self._listeners: list[EventListener] = []

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def config(self) -> RunConfig | None:
        return self._config

    @property
    def session(self) -> RunSession | None:
        return self._session

    # Lifecycle

    async def start(self, config: RunConfig) -> bool:
        """Initialize and begin tracking a run.

        Returns True once the run is active. On a refused permission or a
        stream that cannot start, the engine ends up aborted and the user is
        alerted; no session is kept.
        """
        if self._state is not RunState.IDLE:
            raise RuntimeError(f"Engine already used (state={self._state.value})")
        self._config = config
        self._state = RunState.INITIALIZING
        logger.info(f"Initializing {config.kind} run")

        self._notifications_enabled = await self._call(
            "request notification permission",
            self._notifications.request_permission,
            default=False,
        )
        if not self._notifications_enabled:
            logger.info("Notification permission not granted, no live notification")

        self.gps_interval_seconds = await self._read_gps_interval()
        if self._state is not RunState.INITIALIZING:
            return False

        # Background access is required too: tracking has to survive screen lock.
        if not await self._call(
            "request foreground permission",
            self._permissions.request_foreground,
            default=False,
        ):
            await self._fail_start(PermissionDenied("foreground"), FOREGROUND_PERMISSION_ALERT)
            return False
        if self._state is not RunState.INITIALIZING:
            return False
        if not await self._call(
            "request background permission",
            self._permissions.request_background,
            default=False,
        ):
            await self._fail_start(PermissionDenied("background"), BACKGROUND_PERMISSION_ALERT)
            return False
        if self._state is not RunState.INITIALIZING:
            return False

        initial_fix = await self._call(
            "get initial location", self._location_stream.current_location
        )
        if self._state is not RunState.INITIALIZING:
            return False

        session = RunSession(config=config, started_at_millis=self._clock())
        if initial_fix is not None:
            session.append([initial_fix])
        self._session = session
        self._state = RunState.ACTIVE

        try:
            await self._subscribe(session)
        except Exception as e:
            logger.error(f"Failed to start location tracking: {type(e).__name__}: {e}")
            error = e if isinstance(e, PermissionDenied) else TrackingStartFailure(str(e))
            if self._state is RunState.ACTIVE:
                self._state = RunState.INITIALIZING
            await self._teardown()
            self._session = None
            if self._state is RunState.INITIALIZING:
                await self._fail_start(error, TRACKING_START_ALERT)
            return False
        if self._session is not session or self._state is not RunState.ACTIVE:
            return False

        self._action_subscription = self._notifications.add_action_listener(
            self._on_notification_action
        )
        self._timer_task = asyncio.create_task(self._run_timer(session.id))
        self._refresh_task = asyncio.create_task(
            self._run_notification_refresh(session.id)
        )
        await self._show_notification()
        logger.info(
            f"Run {session.id} active, GPS every {self.gps_interval_seconds}s, "
            f"{len(session.samples)} initial samples"
        )
        self._emit(RunEventKind.STARTED, session.id)
        return True

    async def pause(self) -> bool:
        """Freeze the timer and stop the location stream. Only acts when active."""
        session = self._session
        if self._state is not RunState.ACTIVE or session is None:
            logger.info(f"Ignoring pause in state {self._state.value}")
            return False
        session.current_pause_started_at_millis = self._clock()
        self._state = RunState.PAUSED
        self._emit(RunEventKind.PAUSED, session.id)
        await self._call("unsubscribe location stream", self._location_stream.unsubscribe)
        await self._update_notification()
        return True

    async def resume(self) -> bool:
        """Restart the timer and the location stream. Only acts when paused."""
        session = self._session
        if self._state is not RunState.PAUSED or session is None:
            logger.info(f"Ignoring resume in state {self._state.value}")
            return False
        now = self._clock()
        if session.current_pause_started_at_millis is not None:
            session.paused_accumulated_millis += now - session.current_pause_started_at_millis
            session.current_pause_started_at_millis = None
        self._state = RunState.ACTIVE
        self._emit(RunEventKind.RESUMED, session.id)

        try:
            await self._subscribe(session)
        except Exception as e:
            # The run stays active; samples resume if the stream recovers.
            logger.error(f"Failed to resume location tracking: {type(e).__name__}: {e}")
            self.last_error = e if isinstance(e, TrackingError) else TrackingStartFailure(str(e))
            await self._alert(TRACKING_RESUME_ALERT)
        await self._update_notification()
        return True

    async def toggle_pause(self) -> bool:
        if self._state is RunState.PAUSED:
            return await self.resume()
        return await self.pause()

    async def set_foreground(self, foreground: bool) -> None:
        """Switch the stream between foreground and background delivery."""
        if self._foreground == foreground:
            return
        self._foreground = foreground
        session = self._session
        if self._state is not RunState.ACTIVE or session is None:
            return
        await self._call("unsubscribe location stream", self._location_stream.unsubscribe)
        if self._state is not RunState.ACTIVE or self._session is not session:
            return
        try:
            await self._subscribe(session)
        except Exception as e:
            logger.error(f"Failed to switch location tracking mode: {type(e).__name__}: {e}")
            self.last_error = e if isinstance(e, TrackingError) else TrackingStartFailure(str(e))
            await self._alert(TRACKING_RESUME_ALERT)

    async def request_stop(self) -> bool:
        """Ask the user to confirm, then stop and save the run.

        Returns False when the user cancels, which leaves the run untouched.
        """
        if self._state not in LIVE_STATES:
            return False
        if not await self._confirm(END_RUN_PROMPT):
            logger.info("Stop cancelled by user")
            return False
        if self._state not in LIVE_STATES:
            # Auto-stopped or aborted while the prompt was open.
            return False
        await self.stop()
        return True

    async def stop(self) -> int | None:
        """Stop a run the user has already confirmed ending, and save it."""
        if self._state in LIVE_STATES:
            self._begin_finalization(RunEventKind.MANUALLY_STOPPED)
        return await self.finalize()

    async def finalize(self) -> int | None:
        """Save the finished run, or retry a save that failed.

        Returns the saved run id, or None if the save failed. A failed save
        keeps the run in memory so calling this again retries it.
        """
        async with self._finalize_lock:
            if self._state is RunState.COMPLETED:
                return self.run_id
            completed = self._completed
            if self._state is not RunState.FINALIZING or completed is None:
                logger.warning(f"Cannot finalize a run in state {self._state.value}")
                return None

            await self._teardown()
            session_id = self._session.id if self._session else None
            try:
                run_id = await self._repository.save_completed_run(completed)
            except Exception as e:
                logger.exception(f"Failed to save completed run: {type(e).__name__}: {e}")
                self.last_error = PersistenceFailure(str(e))
                await self._alert(SAVE_FAILED_ALERT)
                return None

            # Persistence owns the record now.
            self.run_id = run_id
            self.last_error = None
            self._final_metrics = (
                completed.duration_seconds,
                completed.total_distance_miles,
                len(completed.samples),
            )
            self._session = None
            self._completed = None
            self._state = RunState.COMPLETED
            logger.info(
                f"Saved run {run_id}: {completed.total_distance_miles:.2f} mi "
                f"in {completed.duration_seconds}s"
            )
            self._emit(
                RunEventKind.COMPLETED, session_id, run_id=run_id, completed_run=completed
            )
            self._spawn(self._attach_weather(run_id, completed))
            return run_id

    async def abort(self) -> bool:
        """Discard the run without saving it. Safe to call more than once."""
        if self._state in TERMINAL_STATES:
            return False
        if self._finalize_lock.locked():
            logger.warning("Not aborting: the run is being saved")
            return False
        previous = self._state
        session_id = self._session.id if self._session else None
        self._state = RunState.ABORTED
        await self._teardown()
        self._session = None
        self._completed = None
        logger.info(f"Run aborted from {previous.value}, nothing saved")
        self._emit(RunEventKind.ABORTED, session_id)
        return True

    async def before_navigate_away(self) -> bool:
        """Intercept leaving the run screen. Returns True if navigation may proceed.

        A tracked run needs the user to confirm; a confirmed exit discards it.
        """
        if self._state in (RunState.IDLE, RunState.INITIALIZING):
            await self.abort()
            return True
        if self._state in TERMINAL_STATES:
            return True
        if self._finalize_lock.locked():
            return False
        if not await self._confirm(EXIT_RUN_PROMPT):
            return False
        await self.abort()
        return self._state in TERMINAL_STATES

    async def tick(self) -> None:
        """Re-evaluate the timer-driven auto-stop from the clock."""
        session = self._session
        if session is None or self._state is not RunState.ACTIVE:
            return
        self._evaluate_auto_stop(session)

    async def wait_closed(self) -> None:
        """Wait for fire-and-forget work (finalization, weather) to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # Observation

    def add_listener(self, listener: EventListener) -> CallbackSubscription:
        self._listeners.append(listener)

        def release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return CallbackSubscription(release)

    def snapshot(self) -> RunSnapshot:
        elapsed, miles, sample_count = self._metrics()
        config = self._config
        snapshot = RunSnapshot(
            state=self._state,
            kind=config.kind if config else None,
            session_id=self._session.id if self._session else None,
            elapsed_seconds=elapsed,
            distance_miles=miles,
            pace=pace(miles, elapsed),
            sample_count=sample_count,
            gps_interval_seconds=self.gps_interval_seconds,
            run_id=self.run_id,
            last_error=str(self.last_error) if self.last_error else None,
        )
        if config and config.kind == "timed" and config.target_seconds:
            snapshot.remaining_seconds = max(0, config.target_seconds - elapsed)
            snapshot.progress = min(1.0, elapsed / config.target_seconds)
        elif config and config.kind == "distance" and config.target_miles:
            snapshot.remaining_miles = max(0.0, config.target_miles - miles)
            snapshot.progress = min(1.0, miles / config.target_miles)
        return snapshot

    def notification_payload(self) -> NotificationPayload | None:
        """Project the live state into a notification, or None when not tracking."""
        config = self._config
        if config is None or self._state not in LIVE_STATES:
            return None
        elapsed, miles, _ = self._metrics()
        return project(
            miles, elapsed, pace(miles, elapsed), self._state is RunState.PAUSED, config
        )

    def _metrics(self) -> tuple[int, float, int]:
        if self._state is RunState.FINALIZING and self._completed is not None:
            completed = self._completed
            return (
                completed.duration_seconds,
                completed.total_distance_miles,
                len(completed.samples),
            )
        if self._state is RunState.COMPLETED and self._final_metrics is not None:
            return self._final_metrics
        session = self._session
        if session is None:
            return (0, 0.0, 0)
        return (
            session.elapsed_seconds(self._clock()),
            session.cumulative_distance_miles,
            len(session.samples),
        )

    # Stream and timer callbacks

    async def _subscribe(self, session: RunSession) -> None:
        mode = TrackingMode.FOREGROUND if self._foreground else TrackingMode.BACKGROUND
        await self._location_stream.subscribe(
            mode,
            partial(self._handle_batch, session.id),
            partial(self._handle_stream_error, session.id),
            self.gps_interval_seconds,
        )

    def _live_session(self, session_id: str) -> RunSession | None:
        session = self._session
        if session is None or session.id != session_id or self._state not in LIVE_STATES:
            return None
        return session

    async def _handle_batch(self, session_id: str, samples: list[LocationSample]) -> None:
        session = self._live_session(session_id)
        if session is None or self._state is not RunState.ACTIVE:
            logger.debug(f"Dropping {len(samples)} samples for inactive session {session_id}")
            return
        if not samples:
            return
        session.append(samples)
        logger.debug(
            f"Appended {len(samples)} samples, "
            f"{session.cumulative_distance_miles:.3f} mi total"
        )
        self._evaluate_auto_stop(session)

    async def _handle_stream_error(self, session_id: str, error: TrackingError) -> None:
        if self._live_session(session_id) is None:
            return
        if isinstance(error, TransientSensorGap):
            logger.debug(f"Sensor gap, no distance this tick: {error}")
            return
        logger.error(f"Location stream error: {type(error).__name__}: {error}")
        self.last_error = error
        if isinstance(error, PermissionDenied):
            await self._alert(FOREGROUND_PERMISSION_ALERT)

    def _evaluate_auto_stop(self, session: RunSession) -> bool:
        if self._state is not RunState.ACTIVE or self._session is not session:
            return False
        config = session.config
        if config.kind == "distance" and config.target_miles is not None:
            reached = session.cumulative_distance_miles >= config.target_miles
        elif config.kind == "timed" and config.target_seconds is not None:
            reached = session.elapsed_seconds(self._clock()) >= config.target_seconds
        else:
            return False
        if not reached:
            return False
        logger.info(f"Run {session.id} reached its {config.kind} target, stopping")
        self._begin_finalization(RunEventKind.AUTO_STOPPED)
        # Own task, so the stream or timer that triggered this is never cancelled
        # from inside itself by the teardown.
        self._spawn(self.finalize())
        return True

    def _begin_finalization(self, kind: RunEventKind) -> None:
        session = self._session
        if session is None:
            raise RuntimeError("No active session to finalize")
        now = self._clock()
        self._state = RunState.FINALIZING
        self._completed = CompletedRun(
            config=session.config,
            started_at=_to_datetime(session.started_at_millis),
            ended_at=_to_datetime(now),
            duration_seconds=session.elapsed_seconds(now),
            total_distance_miles=session.cumulative_distance_miles,
            samples=tuple(session.samples),
        )
        self._emit(kind, session.id)

    async def _run_timer(self, session_id: str) -> None:
        while self._live_session(session_id) is not None:
            await asyncio.sleep(self._timings.tick_seconds)
            await self.tick()

    async def _run_notification_refresh(self, session_id: str) -> None:
        while self._live_session(session_id) is not None:
            await asyncio.sleep(self._timings.notification_refresh_seconds)
            await self._update_notification()

    def _on_notification_action(self, action: NotificationAction) -> None:
        logger.info(f"Notification action: {action}")
        if action == "pause":
            self._spawn(self.pause())
        elif action == "resume":
            self._spawn(self.resume())
        elif action == "stop":
            self._spawn(self.request_stop())
        else:
            logger.warning(f"Unknown notification action: {action}")

    # Notification

    async def _show_notification(self) -> None:
        payload = self.notification_payload()
        if not self._notifications_enabled or payload is None:
            return
        self._notification_shown = True
        await self._call(
            "show run notification", self._notifications.show, RUN_NOTIFICATION_ID, payload
        )

    async def _update_notification(self) -> None:
        payload = self.notification_payload()
        if not self._notification_shown or payload is None:
            return
        await self._call(
            "update run notification", self._notifications.update, RUN_NOTIFICATION_ID, payload
        )

    async def _dismiss_notification(self) -> None:
        if not self._notification_shown:
            return
        self._notification_shown = False
        await self._call(
            "dismiss run notification", self._notifications.dismiss, RUN_NOTIFICATION_ID
        )

    # Teardown and side effects

    async def _teardown(self) -> None:
        """Cancel timers, unsubscribe and dismiss the notification. Idempotent."""
        current = asyncio.current_task()
        for task in (self._timer_task, self._refresh_task):
            if task is None or task is current or task.done():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._timer_task = None
        self._refresh_task = None

        await self._call("unsubscribe location stream", self._location_stream.unsubscribe)

        subscription, self._action_subscription = self._action_subscription, None
        if subscription is not None:
            try:
                subscription.remove()
            except Exception as e:
                logger.error(f"Failed to release notification actions: {e}")

        await self._dismiss_notification()

    async def _fail_start(self, error: TrackingError, prompt: Prompt) -> None:
        logger.warning(f"Run could not start: {error}")
        self.last_error = error
        self._state = RunState.ABORTED
        self._emit(RunEventKind.ABORTED, None, error=error)
        await self._alert(prompt)

    async def _read_gps_interval(self) -> int:
        seconds = await self._call(
            "read GPS interval",
            self._settings.get_gps_interval_seconds,
            default=DEFAULT_GPS_INTERVAL_SECONDS,
        )
        try:
            return validate_gps_interval(seconds)
        except (TypeError, ValueError) as e:
            logger.warning(
                f"Stored GPS interval rejected ({e}), "
                f"using {DEFAULT_GPS_INTERVAL_SECONDS}s"
            )
            return DEFAULT_GPS_INTERVAL_SECONDS

    async def _attach_weather(self, run_id: int, completed: CompletedRun) -> None:
        # Fire-and-forget: nothing here may affect the saved run.
        if self._weather is None:
            return
        last_sample = completed.last_sample
        if last_sample is None:
            logger.debug(f"Run {run_id} has no samples, skipping weather")
            return
        enabled = await self._call(
            "read weather setting",
            self._settings.get_weather_tracking_enabled,
            default=False,
        )
        if not enabled:
            return
        try:
            await self._weather.fetch_and_attach_weather(
                run_id, last_sample, completed.ended_at
            )
        except Exception as e:
            failure = WeatherFetchFailure(f"{type(e).__name__}: {e}")
            logger.warning(f"Could not attach weather to run {run_id}: {failure}")

    def _emit(
        self,
        kind: RunEventKind,
        session_id: str | None,
        *,
        run_id: int | None = None,
        completed_run: CompletedRun | None = None,
        error: TrackingError | None = None,
    ) -> None:
        event = RunEvent(
            kind=kind,
            session_id=session_id,
            at_millis=self._clock(),
            run_id=run_id,
            completed_run=completed_run,
            error=error,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Run event listener failed on {kind.value}: {e}")

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def _confirm(self, prompt: Prompt) -> bool:
        try:
            return await self._prompter.confirm(prompt)
        except Exception as e:
            logger.error(f"Confirmation '{prompt.title}' failed: {e}")
            return False

    async def _alert(self, prompt: Prompt) -> None:
        try:
            await self._prompter.alert(prompt)
        except Exception as e:
            logger.error(f"Alert '{prompt.title}' failed: {e}")

    async def _call(
        self,
        what: str,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        default: Any = None,
    ) -> Any:
        """Await a collaborator call, logging and absorbing any failure."""
        try:
            return await fn(*args)
        except Exception as e:
            logger.error(f"Failed to {what}: {type(e).__name__}: {e}")
            return default
