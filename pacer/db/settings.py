"""Database operations for user settings, stored as key/value rows."""

import logging

from pacer.models import Settings
from pacer.models.settings import DEFAULT_GPS_INTERVAL_SECONDS, validate_gps_interval
from .connection import get_db_cursor

logger = logging.getLogger(__name__)

GPS_INTERVAL_KEY = "gps_interval_seconds"
WEATHER_TRACKING_KEY = "weather_tracking_enabled"
METRIC_UNITS_KEY = "use_metric_units"


def get_setting(key: str) -> str | None:
    """Get the raw stored value for a setting, or None if it was never set."""
    with get_db_cursor() as cursor:
        cursor.execute("SELECT value FROM settings WHERE key = %s", (key,))
        row = cursor.fetchone()
        return row[0] if row else None


def set_setting(key: str, value: str) -> None:
    with get_db_cursor() as cursor:
        cursor.execute(
            """
            INSERT INTO settings (key, value)
            VALUES (%s, %s)
            ON CONFLICT (key)
            DO UPDATE SET value = EXCLUDED.value
            """,
            (key, value),
        )
    logger.debug(f"Set {key}={value}")


def get_gps_interval_seconds() -> int:
    """Get the stored GPS interval, or the default when unset.

    The raw stored number is returned even if out of range; callers validate.
    """
    value = get_setting(GPS_INTERVAL_KEY)
    if value is None:
        return DEFAULT_GPS_INTERVAL_SECONDS
    return int(value)


def get_weather_tracking_enabled() -> bool:
    return _parse_bool(get_setting(WEATHER_TRACKING_KEY))


def get_use_metric_units() -> bool:
    return _parse_bool(get_setting(METRIC_UNITS_KEY))


def get_settings() -> Settings:
    """Get all settings, falling back to defaults for unset or invalid values."""
    with get_db_cursor() as cursor:
        cursor.execute(
            "SELECT key, value FROM settings WHERE key IN (%s, %s, %s)",
            (GPS_INTERVAL_KEY, WEATHER_TRACKING_KEY, METRIC_UNITS_KEY),
        )
        stored = dict(cursor.fetchall())

    gps_interval = DEFAULT_GPS_INTERVAL_SECONDS
    if GPS_INTERVAL_KEY in stored:
        try:
            gps_interval = validate_gps_interval(int(stored[GPS_INTERVAL_KEY]))
        except ValueError as e:
            logger.warning(f"Ignoring stored GPS interval: {e}")

    return Settings(
        gps_interval_seconds=gps_interval,
        weather_tracking_enabled=_parse_bool(stored.get(WEATHER_TRACKING_KEY)),
        use_metric_units=_parse_bool(stored.get(METRIC_UNITS_KEY)),
    )


def update_settings(settings: Settings) -> Settings:
    """Replace all settings in one transaction."""
    with get_db_cursor() as cursor:
        cursor.executemany(
            """
            INSERT INTO settings (key, value)
            VALUES (%s, %s)
            ON CONFLICT (key)
            DO UPDATE SET value = EXCLUDED.value
            """,
            [
                (GPS_INTERVAL_KEY, str(settings.gps_interval_seconds)),
                (WEATHER_TRACKING_KEY, _format_bool(settings.weather_tracking_enabled)),
                (METRIC_UNITS_KEY, _format_bool(settings.use_metric_units)),
            ],
        )
    logger.info(f"Updated settings: {settings.model_dump()}")
    return settings


def _parse_bool(value: str | None) -> bool:
    return value == "true"


def _format_bool(value: bool) -> str:
    return "true" if value else "false"
