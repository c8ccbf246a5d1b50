"""Open-Meteo client for fetching hourly weather near a run's end."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import math
import logging

import httpx

from pacer.models import WeatherData
from pacer.models.weather import Precipitation, WindDirection

from .models import OpenMeteoResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.open-meteo.com"
HOURLY_FIELDS = [
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation",
    "wind_speed_10m",
    "wind_direction_10m",
    "uv_index",
]
CARDINAL_DIRECTIONS: list[WindDirection] = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


@dataclass
class OpenMeteoClient:
    """Client for the Open-Meteo forecast API. No API key is needed."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10

    @property
    def forecast_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/v1/forecast"

    async def fetch_weather(
        self,
        latitude: float,
        longitude: float,
        at: datetime,
        use_metric_units: bool = False,
    ) -> WeatherData:
        """Get the weather for the hour closest to `at`.

        Temperatures are in °C and wind in km/h with metric units, otherwise
        in °F and mph.

        Raises:
            httpx.HTTPStatusError: If the API returns an error status.
            httpx.RequestError: If the API can't be reached.
        """
        params: dict[str, str | float] = {
            "latitude": latitude,
            "longitude": longitude,
            "hourly": ",".join(HOURLY_FIELDS),
            "temperature_unit": "celsius" if use_metric_units else "fahrenheit",
            "wind_speed_unit": "kmh" if use_metric_units else "mph",
            "timezone": "auto",
        }
        logger.debug(f"Fetching weather for ({latitude}, {longitude}) at {at}")
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self.forecast_url, params=params)
        if response.status_code != 200:
            logger.error(
                f"Open-Meteo error: {response.status_code} {response.text}"
            )
            response.raise_for_status()

        forecast = OpenMeteoResponse.model_validate(response.json())
        return weather_at(forecast, at, use_metric_units)


def weather_at(
    forecast: OpenMeteoResponse, at: datetime, use_metric_units: bool
) -> WeatherData:
    """Pick the hour closest to `at` out of a forecast."""
    hourly = forecast.hourly
    if not hourly.time:
        raise ValueError("Forecast has no hourly data")
    offset = timezone(timedelta(seconds=forecast.utc_offset_seconds))
    times = [datetime.fromisoformat(t).replace(tzinfo=offset) for t in hourly.time]
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    # Earliest hour wins a tie.
    index = min(range(len(times)), key=lambda i: abs(times[i] - at))

    temperature = hourly.temperature_2m[index]
    if temperature is None:
        raise ValueError(f"Forecast has no temperature for {hourly.time[index]}")
    precipitation_mm = _at(hourly.precipitation, index)
    wind_degrees = _at(hourly.wind_direction_10m, index)
    uv_index = _at(hourly.uv_index, index)
    temperature_celsius = (
        temperature if use_metric_units else fahrenheit_to_celsius(temperature)
    )

    return WeatherData(
        date=times[index],
        temperature=temperature,
        precipitation=(
            precipitation_category(precipitation_mm, temperature_celsius)
            if precipitation_mm is not None
            else None
        ),
        wind_speed=_at(hourly.wind_speed_10m, index),
        wind_direction=(
            cardinal_direction(wind_degrees) if wind_degrees is not None else None
        ),
        humidity=_at(hourly.relative_humidity_2m, index),
        uv_index=math.floor(uv_index + 0.5) if uv_index is not None else None,
    )


def precipitation_category(mm: float, temperature_celsius: float) -> Precipitation:
    """Bucket an hour's precipitation, in mm, into a category."""
    if mm == 0:
        return "M"
    if temperature_celsius < 0:
        return "SN"
    if mm < 2.5:
        return "L"
    if mm < 10:
        return "H"
    return "ST"


def cardinal_direction(degrees: float) -> WindDirection:
    # Halves round up, so 22.5° is NE.
    return CARDINAL_DIRECTIONS[math.floor(degrees / 45 + 0.5) % 8]


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32) * 5 / 9


def _at(values: list[float | None], index: int) -> float | None:
    return values[index] if index < len(values) else None
