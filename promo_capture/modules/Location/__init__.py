"""Best-effort location enrichment."""

from .config import LocationConfig
from .enricher import LocationEnricher, LocationResult
from .models import Location, LocationError, LocationErrorReason
from .nmea import GGAFix, parse_gga
from .providers import NMEAPositionProvider, PositionProvider, StaticPositionProvider

__all__ = [
    "GGAFix",
    "Location",
    "LocationConfig",
    "LocationEnricher",
    "LocationError",
    "LocationErrorReason",
    "LocationResult",
    "NMEAPositionProvider",
    "PositionProvider",
    "StaticPositionProvider",
    "parse_gga",
]
