import math
from typing import Any, Mapping

from pacer.agg.distance import EARTH_RADIUS_MILES
from pacer.models import LocationSample

# Miles per degree of latitude on the haversine sphere.
MILES_PER_DEGREE = 2 * math.pi * EARTH_RADIUS_MILES / 360


class LocationSampleFactory:
    def __init__(self, sample: LocationSample | None = None):
        if sample is None:
            sample = LocationSample(
                latitude=41.8781,
                longitude=-87.6298,
                timestamp_millis=1_700_000_000_000,
                accuracy_meters=5.0,
            )
        self.sample = sample

    def make(self, update: Mapping[str, Any] | None = None) -> LocationSample:
        return self.sample.model_copy(update=update)

    def north(self, miles: float, seconds_later: float = 0) -> LocationSample:
        """A sample `miles` due north of the base sample."""
        return self.make(
            update={
                "latitude": self.sample.latitude + miles / MILES_PER_DEGREE,
                "timestamp_millis": self.sample.timestamp_millis
                + int(seconds_later * 1000),
            }
        )

    def track(self, *miles_north: float) -> list[LocationSample]:
        """Samples at the given cumulative distances north of the base sample."""
        return [self.north(m, seconds_later=i) for i, m in enumerate(miles_north)]
