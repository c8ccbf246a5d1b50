"""Database operations for weather attached to runs."""

import logging
from datetime import timezone

from pacer.models import WeatherData
from .connection import get_db_cursor, get_db_connection

logger = logging.getLogger(__name__)


def save_weather_for_run(run_id: int, weather: WeatherData) -> int:
    """Insert a weather row and point the run at it. Returns the weather id.

    Both writes happen in one transaction, so a run never references a weather
    row that wasn't saved.

    Raises:
        LookupError: If the run doesn't exist.
    """
    with get_db_connection() as conn:
        with conn.transaction():
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO weather (
                        date, temperature, precipitation, wind_speed,
                        wind_direction, humidity, uv_index
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        weather.date,
                        weather.temperature,
                        weather.precipitation,
                        weather.wind_speed,
                        weather.wind_direction,
                        weather.humidity,
                        weather.uv_index,
                    ),
                )
                weather_id = cursor.fetchone()[0]
                cursor.execute(
                    "UPDATE runs SET weather_id = %s WHERE id = %s",
                    (weather_id, run_id),
                )
                if cursor.rowcount == 0:
                    raise LookupError(f"Run {run_id} not found")

    logger.info(f"Attached weather {weather_id} to run {run_id}")
    return weather_id


def get_weather(weather_id: int) -> WeatherData | None:
    with get_db_cursor() as cursor:
        cursor.execute(
            """
            SELECT date, temperature, precipitation, wind_speed, wind_direction,
                   humidity, uv_index
            FROM weather
            WHERE id = %s
            """,
            (weather_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        date, temperature, precipitation, wind_speed, direction, humidity, uv = row
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        return WeatherData(
            date=date,
            temperature=temperature,
            precipitation=precipitation,
            wind_speed=wind_speed,
            wind_direction=direction,
            humidity=humidity,
            uv_index=uv,
        )
