from .active_run import router as active_run_router
from .runs import router as runs_router
from .settings import router as settings_router

__all__ = [
    "active_run_router",
    "runs_router",
    "settings_router",
]
