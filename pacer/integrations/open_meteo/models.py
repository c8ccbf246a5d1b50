"""Pydantic models for Open-Meteo forecast responses."""

from pydantic import BaseModel


class OpenMeteoHourly(BaseModel):
    """Hourly series; every list is aligned with `time`."""

    time: list[str]  # Local ISO times without offset, e.g. "2024-01-15T10:00"
    temperature_2m: list[float | None]
    relative_humidity_2m: list[float | None] = []
    precipitation: list[float | None] = []
    wind_speed_10m: list[float | None] = []
    wind_direction_10m: list[float | None] = []
    uv_index: list[float | None] = []


class OpenMeteoResponse(BaseModel):
    latitude: float
    longitude: float
    utc_offset_seconds: int = 0
    hourly: OpenMeteoHourly
