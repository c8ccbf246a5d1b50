from fastapi import Depends, HTTPException, Request

from .host import ActiveRun, ActiveRunHost, NoActiveRun


def get_host(request: Request) -> ActiveRunHost:
    """Get the process-wide run host created at startup."""
    return request.app.state.host


def current_run(host: ActiveRunHost = Depends(get_host)) -> ActiveRun:
    try:
        return host.current()
    except NoActiveRun as e:
        raise HTTPException(status_code=404, detail=str(e))
