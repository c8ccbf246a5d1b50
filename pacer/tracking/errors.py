"""Failure kinds surfaced by the run tracking engine and its collaborators."""

from typing import Literal

PermissionScope = Literal["foreground", "background", "notifications"]


class TrackingError(Exception):
    """Base class for tracking failures.

    `retryable` tells the caller whether the same session can try again.
    """

    retryable = False


class PermissionDenied(TrackingError):
    """A location permission was refused. Fatal to starting a run."""

    def __init__(self, scope: PermissionScope, message: str | None = None):
        self.scope = scope
        super().__init__(message or f"{scope} location permission not granted")


class TrackingStartFailure(TrackingError):
    """The location stream could not begin delivering samples."""


class PersistenceFailure(TrackingError):
    """The completed run could not be saved. The session is kept for a retry."""

    retryable = True


class TransientSensorGap(TrackingError):
    """No samples were produced for a tick. Never fatal."""

    retryable = True


class SensorUnavailable(TransientSensorGap):
    """The underlying sensor is temporarily unavailable."""


class WeatherFetchFailure(TrackingError):
    """Weather could not be fetched or attached. Logged, never surfaced."""
