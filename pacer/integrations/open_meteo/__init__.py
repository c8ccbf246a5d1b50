"""Open-Meteo integration for fetching weather at the end of a run."""

from .client import OpenMeteoClient
from .models import OpenMeteoResponse, OpenMeteoHourly

__all__ = ["OpenMeteoClient", "OpenMeteoResponse", "OpenMeteoHourly"]
