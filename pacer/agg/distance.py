import math
from itertools import pairwise
from typing import Sequence

from pacer.models import LocationSample

EARTH_RADIUS_MILES = 3958.8
METERS_PER_MILE = 1609.34
FEET_PER_MILE = 5280


def distance(a: LocationSample, b: LocationSample) -> float:
    """
    Calculate the great-circle distance between two samples using the Haversine formula.

    Args:
        a: First sample (degrees)
        b: Second sample (degrees)

    Returns:
        Distance in miles
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_MILES * c


def total_distance(samples: Sequence[LocationSample]) -> float:
    """
    Calculate the path length of an ordered sequence of samples, in miles.

    Sums the distance between each consecutive pair, in the order given, so the
    result is the length of the path travelled rather than the displacement.
    Fewer than two samples yield 0.
    """
    return sum((distance(a, b) for a, b in pairwise(samples)), 0.0)


def miles_to_meters(miles: float) -> int:
    """Convert miles to whole meters."""
    return round(miles * METERS_PER_MILE)
