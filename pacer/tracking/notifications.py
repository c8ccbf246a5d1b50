"""Projection of live run state into a notification payload."""

from pydantic import BaseModel

from pacer.agg import format_distance, format_duration, miles_to_meters
from pacer.models import RunConfig

RUN_NOTIFICATION_ID = "active-run-notification"


class NotificationProgress(BaseModel):
    current: int
    max: int


class NotificationPayload(BaseModel):
    title: str
    body: str
    is_paused: bool
    progress: NotificationProgress | None = None


def project(
    distance_miles: float,
    elapsed_seconds: int,
    pace: str,
    is_paused: bool,
    config: RunConfig,
) -> NotificationPayload:
    """Build the notification for the current state of a run.

    Timed runs get a progress bar in seconds and distance runs one in meters;
    free runs have no progress bar. Pure, so it can be called at any point.
    """
    body = f"{format_distance(distance_miles)} • {format_duration(elapsed_seconds)} • {pace}/mi"
    return NotificationPayload(
        title="Run Paused" if is_paused else "Run Active",
        body=body,
        is_paused=is_paused,
        progress=_progress(distance_miles, elapsed_seconds, config),
    )


def _progress(
    distance_miles: float, elapsed_seconds: int, config: RunConfig
) -> NotificationProgress | None:
    if config.kind == "timed" and config.target_seconds:
        return NotificationProgress(current=elapsed_seconds, max=config.target_seconds)
    if config.kind == "distance" and config.target_miles:
        # Meters give the progress bar finer steps than miles.
        return NotificationProgress(
            current=miles_to_meters(distance_miles),
            max=miles_to_meters(config.target_miles),
        )
    return None
