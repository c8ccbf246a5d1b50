from typing import Any, Mapping
from datetime import datetime, timezone

from pacer.models import CompletedRun, RunConfig, StoredRun


class StoredRunFactory:
    def __init__(self, run: StoredRun | None = None):
        if run is None:
            run = StoredRun(
                id=1,
                kind="free",
                started_at=datetime(2024, 5, 4, 12, 0, 0, tzinfo=timezone.utc),
                ended_at=datetime(2024, 5, 4, 12, 30, 0, tzinfo=timezone.utc),
                duration_seconds=1800,
                miles=3.1,
                steps=0,
                rating=0,
                note=None,
                weather_id=None,
            )
        self.run = run

    def make(self, update: Mapping[str, Any] | None = None) -> StoredRun:
        return self.run.model_copy(deep=True, update=update)


class CompletedRunFactory:
    def __init__(self, run: CompletedRun | None = None):
        if run is None:
            run = CompletedRun(
                config=RunConfig.timed(1800),
                started_at=datetime(2024, 5, 4, 12, 0, 0, tzinfo=timezone.utc),
                ended_at=datetime(2024, 5, 4, 12, 30, 0, tzinfo=timezone.utc),
                duration_seconds=1800,
                total_distance_miles=3.1,
                samples=(),
            )
        self.run = run

    def make(self, update: Mapping[str, Any] | None = None) -> CompletedRun:
        return self.run.model_copy(deep=True, update=update)
