"""Router for the history of saved runs."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from pacer.agg import RunSummary, summarize_runs
from pacer.db.runs import get_all_runs, get_run_by_id, get_run_samples, update_run_review
from pacer.db.weather import get_weather
from pacer.models import StoredRun

from ..auth import require_device_key
from ..models import RunDetailResponse, RunReviewRequest

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/runs",
    tags=["runs"],
    dependencies=[Depends(require_device_key)],
)


@router.get("", response_model=list[StoredRun])
def read_runs() -> list[StoredRun]:
    """Get all saved runs, most recent first."""
    return get_all_runs()


@router.get("/summary", response_model=RunSummary)
def read_summary() -> RunSummary:
    """Get totals across all saved runs."""
    return summarize_runs(get_all_runs())


@router.get("/{run_id}", response_model=RunDetailResponse)
def read_run(run_id: int) -> RunDetailResponse:
    """Get a run with its weather and recorded locations."""
    run = get_run_by_id(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
    weather = get_weather(run.weather_id) if run.weather_id is not None else None
    return RunDetailResponse(run=run, weather=weather, samples=get_run_samples(run_id))


@router.patch("/{run_id}", response_model=StoredRun)
def review_run(run_id: int, review: RunReviewRequest) -> StoredRun:
    """Set the rating (0-5) and note of a saved run."""
    if not update_run_review(run_id, review.rating, review.note):
        raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
    run = get_run_by_id(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
    return run
