"""Interfaces the run tracking engine consumes.

Each collaborator is injected into an engine instance; nothing here holds
module-level state, so several engines (or tests) never share handlers.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Literal, Protocol

from pacer.models import CompletedRun, LocationSample

from .notifications import NotificationPayload

NotificationAction = Literal["pause", "resume", "stop"]
ActionCallback = Callable[[NotificationAction], None]


class Subscription(Protocol):
    def remove(self) -> None: ...


@dataclass
class CallbackSubscription:
    """A subscription released by calling a function. Removing twice is a no-op."""

    _release: Callable[[], None] | None

    def remove(self) -> None:
        if self._release is not None:
            release, self._release = self._release, None
            release()


@dataclass(frozen=True)
class Prompt:
    """A user-facing message, optionally asking for confirmation."""

    title: str
    message: str
    confirm_label: str = "OK"
    destructive: bool = False


END_RUN_PROMPT = Prompt(
    title="End Run",
    message="Are you sure you want to end this run?",
    confirm_label="End Run",
    destructive=True,
)
EXIT_RUN_PROMPT = Prompt(
    title="Run in Progress",
    message="You have an active run. Are you sure you want to exit? Your run will not be saved.",
    confirm_label="Exit",
    destructive=True,
)
FOREGROUND_PERMISSION_ALERT = Prompt(
    title="Location Permission Required",
    message="Please enable location permissions to track your run.",
)
BACKGROUND_PERMISSION_ALERT = Prompt(
    title="Background Location Required",
    message="Please enable background location to track your run even when the screen is locked.",
)
TRACKING_START_ALERT = Prompt(
    title="GPS Error",
    message="Failed to start location tracking. Please try again.",
)
TRACKING_RESUME_ALERT = Prompt(
    title="GPS Error",
    message="Failed to resume location tracking.",
)
SAVE_FAILED_ALERT = Prompt(
    title="Error",
    message="Failed to save run. Please try again.",
)


class Prompter(Protocol):
    async def confirm(self, prompt: Prompt) -> bool: ...

    async def alert(self, prompt: Prompt) -> None: ...


class PermissionGateway(Protocol):
    async def request_foreground(self) -> bool: ...

    async def request_background(self) -> bool: ...


class RunRepository(Protocol):
    async def save_completed_run(self, run: CompletedRun) -> int:
        """Save the whole run atomically and return its id, or raise."""
        ...


class SettingsProvider(Protocol):
    async def get_gps_interval_seconds(self) -> int: ...

    async def get_weather_tracking_enabled(self) -> bool: ...

    async def get_use_metric_units(self) -> bool: ...


class WeatherService(Protocol):
    async def fetch_and_attach_weather(
        self, run_id: int, coordinate: LocationSample, ended_at: datetime
    ) -> int | None: ...


class NotificationSink(Protocol):
    """Platform renderer for the live run notification.

    `show` and `update` replace the content of the notification with the given
    identity; `dismiss` must be safe to call when nothing is shown.
    """

    async def request_permission(self) -> bool: ...

    async def show(self, notification_id: str, payload: NotificationPayload) -> None: ...

    async def update(self, notification_id: str, payload: NotificationPayload) -> None: ...

    async def dismiss(self, notification_id: str) -> None: ...

    def add_action_listener(self, callback: ActionCallback) -> Subscription: ...
