from pydantic import BaseModel, Field

from pacer.models import LocationSample, RunConfig, StoredRun, WeatherData
from pacer.tracking import TrackingMode
from pacer.tracking.state import RunSnapshot

from .env_loader import EnvironmentName


class EnvironmentResponse(BaseModel):
    environment: EnvironmentName


class StartRunRequest(BaseModel):
    """Request to start a run, with the permission results from the device."""

    config: RunConfig
    foreground_permission: bool = True
    background_permission: bool = True
    initial_fix: LocationSample | None = None


class AlertMessage(BaseModel):
    title: str
    message: str


class ActiveRunResponse(BaseModel):
    """The live state of the current run plus any alerts raised for the user."""

    snapshot: RunSnapshot
    alerts: list[AlertMessage] = []


class LocationBatchRequest(BaseModel):
    samples: list[LocationSample]
    mode: TrackingMode = TrackingMode.FOREGROUND


class LocationBatchResponse(BaseModel):
    accepted: bool
    snapshot: RunSnapshot


class VisibilityRequest(BaseModel):
    foreground: bool


class ActionResponse(BaseModel):
    delivered: int


class RunReviewRequest(BaseModel):
    """Post-run rating and note, set from the run complete screen."""

    rating: int = Field(ge=0, le=5)
    note: str | None = Field(default=None, max_length=2000)


class RunDetailResponse(BaseModel):
    run: StoredRun
    weather: WeatherData | None = None
    samples: list[LocationSample] = []
