from .run import StoredRunFactory, CompletedRunFactory
from .location import LocationSampleFactory
from .tracking import (
    FakeClock,
    FakePrompter,
    FakePermissions,
    FakeRepository,
    FakeSettings,
    FakeWeather,
)

__all__ = [
    "StoredRunFactory",
    "CompletedRunFactory",
    "LocationSampleFactory",
    "FakeClock",
    "FakePrompter",
    "FakePermissions",
    "FakeRepository",
    "FakeSettings",
    "FakeWeather",
]
