"""Display formatting for distances, durations and pace."""

import math
from decimal import Decimal, ROUND_HALF_UP

from .distance import FEET_PER_MILE

NO_PACE = "--:--"


def _round_half_up(value: float, places: int) -> str:
    # Round the shortest decimal repr, so 1.005 rounds to 1.01 rather than 1.00.
    exponent = Decimal(1).scaleb(-places)
    return str(Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def format_distance(miles: float) -> str:
    """Format a distance in feet below a tenth of a mile, otherwise in miles."""
    if miles < 0.1:
        return f"{_round_half_up(miles * FEET_PER_MILE, 0)} ft"
    return f"{_round_half_up(miles, 2)} mi"


def format_duration(seconds: float) -> str:
    """Format seconds as H:MM:SS when at least an hour, otherwise M:SS."""
    total = max(0, math.floor(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def pace(miles: float, seconds: float) -> str:
    """
    Calculate pace as minutes per mile, formatted M:SS.

    Returns "--:--" when no distance has been covered yet.
    """
    if miles == 0:
        return NO_PACE
    pace_seconds = seconds / miles
    minutes = math.floor(pace_seconds / 60)
    secs = math.floor(pace_seconds % 60)
    return f"{minutes}:{secs:02d}"
