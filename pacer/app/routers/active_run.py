"""Router for the run currently being tracked."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from pacer.tracking import (
    NotificationAction,
    NotificationPayload,
    PermissionDenied,
    PersistenceFailure,
    PushLocationStream,
    RunState,
    TrackingStartFailure,
)
from pacer.tracking.notifications import RUN_NOTIFICATION_ID

from ..auth import require_device_key
from ..dependencies import current_run, get_host
from ..host import ActiveRun, ActiveRunHost, ReportedPermissions, RunAlreadyActive
from ..models import (
    ActionResponse,
    ActiveRunResponse,
    AlertMessage,
    LocationBatchRequest,
    LocationBatchResponse,
    StartRunRequest,
    VisibilityRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/runs/active",
    tags=["active run"],
    dependencies=[Depends(require_device_key)],
)


def _response(run: ActiveRun) -> ActiveRunResponse:
    return ActiveRunResponse(
        snapshot=run.engine.snapshot(),
        alerts=[
            AlertMessage(title=prompt.title, message=prompt.message)
            for prompt in run.prompter.alerts
        ],
    )


def _raise_for_engine_error(run: ActiveRun, action: str) -> None:
    """Translate the engine's last error into an HTTP error."""
    error = run.engine.last_error
    if isinstance(error, PermissionDenied):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, TrackingStartFailure):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))
    if isinstance(error, PersistenceFailure):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{error}. The run is kept; stop again to retry.",
        )
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Cannot {action} a run that is {run.engine.state.value}",
    )


@router.post("", response_model=ActiveRunResponse, status_code=status.HTTP_201_CREATED)
async def start_run(
    request: StartRunRequest, host: ActiveRunHost = Depends(get_host)
) -> ActiveRunResponse:
    """Start tracking a new run.

    The device reports the outcome of its permission prompts; a refused
    permission aborts the run with a 403.
    """
    permissions = ReportedPermissions(
        foreground=request.foreground_permission,
        background=request.background_permission,
    )
    try:
        run = await host.start(request.config, permissions, request.initial_fix)
    except RunAlreadyActive as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if run.engine.state is not RunState.ACTIVE:
        _raise_for_engine_error(run, "start")
    return _response(run)


@router.get("", response_model=ActiveRunResponse)
async def get_active_run(run: ActiveRun = Depends(current_run)) -> ActiveRunResponse:
    return _response(run)


@router.get("/notification", response_model=NotificationPayload)
async def get_notification(run: ActiveRun = Depends(current_run)) -> NotificationPayload:
    """Get the notification currently shown for the run."""
    payload = run.notifications.current.get(RUN_NOTIFICATION_ID)
    if payload is None:
        raise HTTPException(status_code=404, detail="No run notification is shown")
    return payload


@router.post("/locations", response_model=LocationBatchResponse)
async def push_locations(
    batch: LocationBatchRequest, run: ActiveRun = Depends(current_run)
) -> LocationBatchResponse:
    """Deliver a batch of fixes acquired by the device."""
    stream = run.stream
    if not isinstance(stream, PushLocationStream):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Locations are read from gpsd, not pushed",
        )
    accepted = await stream.push(batch.samples, batch.mode)
    logger.debug(f"Pushed {len(batch.samples)} samples, accepted={accepted}")
    return LocationBatchResponse(accepted=accepted, snapshot=run.engine.snapshot())


@router.post("/pause", response_model=ActiveRunResponse)
async def pause_run(run: ActiveRun = Depends(current_run)) -> ActiveRunResponse:
    if not await run.engine.pause():
        _raise_for_engine_error(run, "pause")
    return _response(run)


@router.post("/resume", response_model=ActiveRunResponse)
async def resume_run(run: ActiveRun = Depends(current_run)) -> ActiveRunResponse:
    if not await run.engine.resume():
        _raise_for_engine_error(run, "resume")
    return _response(run)


@router.post(
    "/actions/{action}",
    response_model=ActionResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def notification_action(
    action: NotificationAction, run: ActiveRun = Depends(current_run)
) -> ActionResponse:
    """Report a press on one of the notification's action buttons.

    The action is handled asynchronously; poll the run for the outcome.
    """
    delivered = run.notifications.dispatch_action(action)
    if delivered == 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The run is no longer listening for notification actions",
        )
    return ActionResponse(delivered=delivered)


@router.post("/visibility", response_model=ActiveRunResponse)
async def set_visibility(
    request: VisibilityRequest, run: ActiveRun = Depends(current_run)
) -> ActiveRunResponse:
    """Tell the tracker whether the app is in the foreground."""
    await run.engine.set_foreground(request.foreground)
    return _response(run)


@router.post("/stop", response_model=ActiveRunResponse)
async def stop_run(run: ActiveRun = Depends(current_run)) -> ActiveRunResponse:
    """Stop and save the run. The user has confirmed on the device.

    Calling this again after a failed save retries the save.
    """
    engine = run.engine
    if engine.state in (RunState.IDLE, RunState.INITIALIZING, RunState.ABORTED):
        _raise_for_engine_error(run, "stop")
    run_id = await engine.stop()
    if run_id is None:
        _raise_for_engine_error(run, "stop")
    return _response(run)


@router.delete("", response_model=ActiveRunResponse)
async def discard_run(run: ActiveRun = Depends(current_run)) -> ActiveRunResponse:
    """Discard the run without saving it. The user has confirmed on the device."""
    engine = run.engine
    if engine.state is RunState.ABORTED:
        return _response(run)
    if engine.state is RunState.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="The run was already saved"
        )
    if not await engine.abort():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="The run is being saved"
        )
    return _response(run)
