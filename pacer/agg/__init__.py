from .distance import distance, total_distance, miles_to_meters
from .pace import format_distance, format_duration, pace, NO_PACE
from .summary import summarize_runs, RunSummary

__all__ = [
    "distance",
    "total_distance",
    "miles_to_meters",
    "format_distance",
    "format_duration",
    "pace",
    "NO_PACE",
    "summarize_runs",
    "RunSummary",
]
