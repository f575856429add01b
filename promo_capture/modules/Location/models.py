from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

MAP_URL_TEMPLATE = "https://maps.google.com/?q={lat},{lon}"


class LocationErrorReason(Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    accuracy_m: float
    timestamp: float = field(default_factory=time.time)

    @property
    def map_url(self) -> str:
        return MAP_URL_TEMPLATE.format(lat=self.latitude, lon=self.longitude)

    def age_s(self, now: float | None = None) -> float:
        return (now if now is not None else time.time()) - self.timestamp


@dataclass(frozen=True)
class LocationError:
    reason: LocationErrorReason
    message: str = ""

    def describe(self) -> str:
        return self.message or _DEFAULT_MESSAGES[self.reason]


_DEFAULT_MESSAGES = {
    LocationErrorReason.PERMISSION_DENIED: "Location access denied",
    LocationErrorReason.POSITION_UNAVAILABLE: "Location information unavailable",
    LocationErrorReason.TIMEOUT: "Location request timed out",
}
