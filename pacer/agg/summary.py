from pydantic import BaseModel

from pacer.models import StoredRun


class RunSummary(BaseModel):
    """Totals across a set of runs, for the overview screen."""

    count: int
    total_miles: float
    total_seconds: int


def summarize_runs(runs: list[StoredRun]) -> RunSummary:
    """
    Calculate totals for a list of runs.

    Time is moving time, so paused stretches are not counted.
    """
    return RunSummary(
        count=len(runs),
        total_miles=sum(run.miles for run in runs),
        total_seconds=sum(run.duration_seconds for run in runs),
    )
