from .run import (
    RunKind,
    RunKindCode,
    RunConfig,
    LocationSample,
    CompletedRun,
    StoredRun,
)
from .settings import Settings
from .weather import WeatherData, Precipitation, WindDirection

__all__ = [
    "RunKind",
    "RunKindCode",
    "RunConfig",
    "LocationSample",
    "CompletedRun",
    "StoredRun",
    "Settings",
    "WeatherData",
    "Precipitation",
    "WindDirection",
]
