from datetime import datetime
from typing import Literal

from pydantic import BaseModel

# M = Minimal, L = Light, H = Heavy, ST = Storm, SN = Snow
Precipitation = Literal["M", "L", "H", "ST", "SN"]
WindDirection = Literal["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


class WeatherData(BaseModel):
    """Weather conditions for the hour closest to the end of a run."""

    date: datetime
    temperature: float
    precipitation: Precipitation | None = None
    wind_speed: float | None = None
    wind_direction: WindDirection | None = None
    humidity: float | None = None
    uv_index: int | None = None
