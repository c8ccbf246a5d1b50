from __future__ import annotations
from datetime import datetime
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


RunKind = Literal["timed", "distance", "free"]
RunKindCode = Literal["T", "D", "F"]

# Map our run kinds to the single-letter codes stored in the runs table.
RunKindCodeMap: dict[RunKind, RunKindCode] = {
    "timed": "T",
    "distance": "D",
    "free": "F",
}
RunKindFromCode: dict[RunKindCode, RunKind] = {
    code: kind for kind, code in RunKindCodeMap.items()
}


class RunConfig(BaseModel):
    """How a run is set up when it starts. Immutable for the life of the run."""

    model_config = ConfigDict(frozen=True)

    kind: RunKind
    target_seconds: int | None = Field(default=None, gt=0)
    target_miles: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_targets(self) -> Self:
        if self.kind == "timed":
            if self.target_seconds is None or self.target_miles is not None:
                raise ValueError("A timed run needs target_seconds and no target_miles")
        elif self.kind == "distance":
            if self.target_miles is None or self.target_seconds is not None:
                raise ValueError("A distance run needs target_miles and no target_seconds")
        elif self.target_seconds is not None or self.target_miles is not None:
            raise ValueError("A free run takes no target")
        return self

    @classmethod
    def timed(cls, seconds: int) -> Self:
        return cls(kind="timed", target_seconds=seconds)

    @classmethod
    def distance(cls, miles: float) -> Self:
        return cls(kind="distance", target_miles=miles)

    @classmethod
    def free(cls) -> Self:
        return cls(kind="free")

    @property
    def code(self) -> RunKindCode:
        return RunKindCodeMap[self.kind]

    @property
    def label(self) -> str:
        """Human-readable name of the run kind."""
        return {
            "timed": "Timed Run",
            "distance": "Distance Run",
            "free": "Free Run",
        }[self.kind]


class LocationSample(BaseModel):
    """One GPS fix."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    timestamp_millis: int  # Wall clock; not guaranteed to increase across batches
    accuracy_meters: float | None = None


class CompletedRun(BaseModel):
    """Immutable snapshot of a finished run, handed to persistence."""

    model_config = ConfigDict(frozen=True)

    config: RunConfig
    started_at: datetime
    ended_at: datetime
    duration_seconds: int  # Moving time, pauses excluded
    total_distance_miles: float
    samples: tuple[LocationSample, ...] = ()

    @property
    def last_sample(self) -> LocationSample | None:
        return self.samples[-1] if self.samples else None


class StoredRun(BaseModel):
    """A run as read back from the database."""

    id: int
    kind: RunKind
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    miles: float  # in miles
    steps: int = 0
    rating: int = 0
    note: str | None = None
    weather_id: int | None = None

    @property
    def elapsed_seconds(self) -> float:
        """Wall-clock time between start and end, pauses included."""
        return (self.ended_at - self.started_at).total_seconds()
