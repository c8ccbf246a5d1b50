from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from pydantic import BaseModel

from pacer.agg import total_distance
from pacer.models import CompletedRun, LocationSample, RunConfig, RunKind

from .errors import TrackingError


class RunState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    PAUSED = "paused"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ABORTED = "aborted"


# States in which a session is being tracked.
LIVE_STATES = (RunState.ACTIVE, RunState.PAUSED)
TERMINAL_STATES = (RunState.COMPLETED, RunState.ABORTED)


class RunEventKind(str, Enum):
    STARTED = "started"
    PAUSED = "paused"
    RESUMED = "resumed"
    AUTO_STOPPED = "auto_stopped"
    MANUALLY_STOPPED = "manually_stopped"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class RunEvent:
    kind: RunEventKind
    session_id: str | None
    at_millis: int
    run_id: int | None = None
    completed_run: CompletedRun | None = None
    error: TrackingError | None = None


EventListener = Callable[[RunEvent], None]


@dataclass
class RunSession:
    """Mutable state of one run, owned by a single engine."""

    config: RunConfig
    started_at_millis: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    samples: list[LocationSample] = field(default_factory=list)
    paused_accumulated_millis: int = 0
    current_pause_started_at_millis: int | None = None
    _distance_miles: float = field(default=0.0, init=False, repr=False)

    @property
    def cumulative_distance_miles(self) -> float:
        return self._distance_miles

    def append(self, batch: Iterable[LocationSample]) -> None:
        """Append samples in arrival order and recompute the distance from them."""
        self.samples.extend(batch)
        self._distance_miles = total_distance(self.samples)

    def elapsed_millis(self, now_millis: int) -> int:
        """Moving time at `now_millis`, excluding every paused interval."""
        paused = self.paused_accumulated_millis
        if self.current_pause_started_at_millis is not None:
            paused += now_millis - self.current_pause_started_at_millis
        return max(0, now_millis - self.started_at_millis - paused)

    def elapsed_seconds(self, now_millis: int) -> int:
        return self.elapsed_millis(now_millis) // 1000


class RunSnapshot(BaseModel):
    """What a screen or notification needs to show about the run right now."""

    state: RunState
    kind: RunKind | None = None
    session_id: str | None = None
    elapsed_seconds: int = 0
    distance_miles: float = 0.0
    pace: str = "--:--"
    remaining_seconds: int | None = None
    remaining_miles: float | None = None
    progress: float = 0.0
    sample_count: int = 0
    gps_interval_seconds: int | None = None
    run_id: int | None = None
    last_error: str | None = None

    @property
    def is_paused(self) -> bool:
        return self.state is RunState.PAUSED
