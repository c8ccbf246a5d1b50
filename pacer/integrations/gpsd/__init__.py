"""gpsd integration: a location provider reading fixes from a local gpsd daemon."""

from .client import GpsdConfig, GpsdLocationProvider, parse_tpv

__all__ = ["GpsdConfig", "GpsdLocationProvider", "parse_tpv"]
