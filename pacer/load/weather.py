import asyncio
import logging
from datetime import datetime
from typing import Callable

from pacer.db.weather import save_weather_for_run
from pacer.integrations.open_meteo import OpenMeteoClient
from pacer.models import LocationSample, WeatherData
from pacer.tracking.collaborators import SettingsProvider

logger = logging.getLogger(__name__)


class WeatherRecorder:
    """Fetches the weather at a run's last position and attaches it to the run.

    Failures propagate; the engine treats this as best-effort and only logs them.
    """

    def __init__(
        self,
        client: OpenMeteoClient,
        settings: SettingsProvider,
        save: Callable[[int, WeatherData], int] = save_weather_for_run,
    ) -> None:
        self.client = client
        self.settings = settings
        self._save = save

    async def fetch_and_attach_weather(
        self, run_id: int, coordinate: LocationSample, ended_at: datetime
    ) -> int:
        """Fetch weather for the hour closest to `ended_at` and save it on the run.

        Returns:
            The id of the saved weather row.
        """
        use_metric_units = await self.settings.get_use_metric_units()
        logger.info(
            f"Fetching weather for run {run_id} at "
            f"({coordinate.latitude:.4f}, {coordinate.longitude:.4f})"
        )
        weather = await self.client.fetch_weather(
            coordinate.latitude,
            coordinate.longitude,
            ended_at,
            use_metric_units=use_metric_units,
        )
        loop = asyncio.get_running_loop()
        weather_id = await loop.run_in_executor(None, self._save, run_id, weather)
        logger.info(
            f"Attached weather {weather_id} to run {run_id}: "
            f"{weather.temperature}° precipitation={weather.precipitation}"
        )
        return weather_id
