"""User settings persisted in the key/value settings table."""

from pydantic import BaseModel, Field

MIN_GPS_INTERVAL_SECONDS = 1
MAX_GPS_INTERVAL_SECONDS = 300
DEFAULT_GPS_INTERVAL_SECONDS = 5


class Settings(BaseModel):
    gps_interval_seconds: int = Field(
        default=DEFAULT_GPS_INTERVAL_SECONDS,
        ge=MIN_GPS_INTERVAL_SECONDS,
        le=MAX_GPS_INTERVAL_SECONDS,
        description="How often the foreground stream samples GPS",
    )
    weather_tracking_enabled: bool = Field(
        default=False, description="Attach weather to runs when they are saved"
    )
    use_metric_units: bool = Field(
        default=False, description="Fetch weather in metric units"
    )


def validate_gps_interval(seconds: int) -> int:
    """Reject GPS intervals outside [1, 300] seconds.

    Raises:
        ValueError: If the interval is out of range.
    """
    if not MIN_GPS_INTERVAL_SECONDS <= seconds <= MAX_GPS_INTERVAL_SECONDS:
        raise ValueError(
            f"GPS interval must be between {MIN_GPS_INTERVAL_SECONDS} and "
            f"{MAX_GPS_INTERVAL_SECONDS} seconds, got {seconds}"
        )
    return seconds
