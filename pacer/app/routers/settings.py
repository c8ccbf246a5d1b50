"""Router for user settings."""

from fastapi import APIRouter, Depends

from pacer.db.settings import get_settings, update_settings
from pacer.models import Settings

from ..auth import require_device_key

router = APIRouter(
    prefix="/settings",
    tags=["settings"],
    dependencies=[Depends(require_device_key)],
)


@router.get("", response_model=Settings)
def read_settings() -> Settings:
    return get_settings()


@router.put("", response_model=Settings)
def replace_settings(settings: Settings) -> Settings:
    """Replace all settings. A GPS interval outside 1-300 seconds is rejected."""
    return update_settings(settings)
