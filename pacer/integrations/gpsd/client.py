"""Location provider backed by a gpsd daemon.

gpsd streams newline-delimited JSON once watching is enabled. Each `read`
drains whatever TPV (time-position-velocity) reports arrived since the last
call and turns the ones with a fix into samples.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime

from pacer.models import LocationSample
from pacer.tracking.errors import SensorUnavailable

logger = logging.getLogger(__name__)

WATCH_ENABLE = b'?WATCH={"enable":true,"json":true}\n'
WATCH_DISABLE = b'?WATCH={"enable":false}\n'


@dataclass
class GpsdConfig:
    host: str = "localhost"
    port: int = 2947
    connect_timeout: float = 10.0
    # How long a read waits for the next line before treating the queue as drained.
    drain_timeout: float = 0.05
    max_lines_per_read: int = 100


class GpsdLocationProvider:
    """Reads fixes from gpsd for a `PollingLocationStream`."""

    def __init__(self, config: GpsdConfig | None = None) -> None:
        self.config = config or GpsdConfig()
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def is_connected(self) -> bool:
        return self._reader is not None

    async def connect(self) -> None:
        """Connect to gpsd and enable JSON watching.

        Raises:
            SensorUnavailable: If gpsd can't be reached.
        """
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.config.host, self.config.port),
                timeout=self.config.connect_timeout,
            )
            self._writer.write(WATCH_ENABLE)
            await self._writer.drain()
        except (asyncio.TimeoutError, OSError) as e:
            self._reader = None
            self._writer = None
            logger.warning(
                f"Could not connect to gpsd at {self.config.host}:{self.config.port}: {e}"
            )
            raise SensorUnavailable(f"gpsd unavailable: {e}") from e
        logger.info(f"Connected to gpsd at {self.config.host}:{self.config.port}")

    async def close(self) -> None:
        writer = self._writer
        self._reader = None
        self._writer = None
        if writer is None:
            return
        try:
            writer.write(WATCH_DISABLE)
            await writer.drain()
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing gpsd connection: {e}")

    async def read(self) -> list[LocationSample]:
        """Return the fixes reported since the last read, possibly none.

        Raises:
            SensorUnavailable: If gpsd can't be reached or drops the connection.
        """
        if self._reader is None:
            await self.connect()
        reader = self._reader
        if reader is None:
            raise SensorUnavailable("gpsd connection is not open")

        samples: list[LocationSample] = []
        for _ in range(self.config.max_lines_per_read):
            try:
                line = await asyncio.wait_for(
                    reader.readline(), timeout=self.config.drain_timeout
                )
            except asyncio.TimeoutError:
                break
            except OSError as e:
                logger.warning(f"Lost gpsd connection: {e}")
                await self.close()
                raise SensorUnavailable(f"gpsd connection lost: {e}") from e
            if not line:
                await self.close()
                raise SensorUnavailable("gpsd closed the connection")
            try:
                data = json.loads(line.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping malformed gpsd line: {e}")
                continue
            if data.get("class") != "TPV":
                continue
            sample = parse_tpv(data)
            if sample is not None:
                samples.append(sample)

        logger.debug(f"Read {len(samples)} fixes from gpsd")
        return samples


def parse_tpv(data: dict) -> LocationSample | None:
    """Turn a TPV report into a sample, or None if it carries no 2D/3D fix.

    Mode is 0 (unknown), 1 (no fix), 2 (2D) or 3 (3D).
    """
    if data.get("mode", 0) < 2 or "lat" not in data or "lon" not in data:
        return None
    try:
        latitude = float(data["lat"])
        longitude = float(data["lon"])
    except (TypeError, ValueError) as e:
        logger.error(f"TPV parse error: {e} - data: {data}")
        return None

    timestamp_millis = _timestamp_millis(data.get("time"))
    # Horizontal error: eph when reported, else the worse of the two axes.
    accuracy = data.get("eph")
    if accuracy is None and ("epx" in data or "epy" in data):
        accuracy = max(data.get("epx", 0.0), data.get("epy", 0.0))

    try:
        return LocationSample(
            latitude=latitude,
            longitude=longitude,
            timestamp_millis=timestamp_millis,
            accuracy_meters=accuracy,
        )
    except ValueError as e:
        logger.error(f"TPV out of range: {e} - data: {data}")
        return None


def _timestamp_millis(value: str | None) -> int:
    if value:
        try:
            return int(datetime.fromisoformat(value).timestamp() * 1000)
        except ValueError:
            logger.debug(f"Unparseable TPV time {value!r}, using wall clock")
    return time.time_ns() // 1_000_000
