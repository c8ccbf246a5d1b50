from .errors import (
    TrackingError,
    PermissionDenied,
    TrackingStartFailure,
    PersistenceFailure,
    TransientSensorGap,
    SensorUnavailable,
    WeatherFetchFailure,
)
from .collaborators import (
    NotificationAction,
    Prompt,
    Prompter,
    PermissionGateway,
    RunRepository,
    SettingsProvider,
    WeatherService,
    NotificationSink,
    CallbackSubscription,
)
from .location import (
    LocationStream,
    PollingLocationStream,
    PushLocationStream,
    BackgroundTaskRegistry,
    TrackingMode,
)
from .notifications import NotificationPayload, NotificationProgress, project
from .sinks import InMemoryNotificationSink
from .state import RunState, RunEvent, RunEventKind, RunSession, RunSnapshot
from .engine import RunTrackingEngine, EngineTimings

__all__ = [
    "TrackingError",
    "PermissionDenied",
    "TrackingStartFailure",
    "PersistenceFailure",
    "TransientSensorGap",
    "SensorUnavailable",
    "WeatherFetchFailure",
    "NotificationAction",
    "Prompt",
    "Prompter",
    "PermissionGateway",
    "RunRepository",
    "SettingsProvider",
    "WeatherService",
    "NotificationSink",
    "CallbackSubscription",
    "LocationStream",
    "PollingLocationStream",
    "PushLocationStream",
    "BackgroundTaskRegistry",
    "TrackingMode",
    "NotificationPayload",
    "NotificationProgress",
    "project",
    "InMemoryNotificationSink",
    "RunState",
    "RunEvent",
    "RunEventKind",
    "RunSession",
    "RunSnapshot",
    "RunTrackingEngine",
    "EngineTimings",
]
