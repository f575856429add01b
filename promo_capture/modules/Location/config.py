"""Typed configuration for the location module."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from promo_capture.modules.base.typed_config import (
    PrefsLike,
    get_pref_bool,
    get_pref_int,
    get_pref_optional_float,
    get_pref_str,
)

from .enricher import DEFAULT_MAX_AGE_MS, DEFAULT_TIMEOUT_MS, LocationEnricher
from .providers import DEFAULT_BAUD_RATE, NMEAPositionProvider, PositionProvider, StaticPositionProvider


@dataclass(slots=True)
class LocationConfig:
    enabled: bool = True
    serial_port: str = "/dev/serial0"
    baud_rate: int = DEFAULT_BAUD_RATE
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_age_ms: int = DEFAULT_MAX_AGE_MS

    # Fixed coordinate for sites without a GPS receiver
    static_latitude: Optional[float] = None
    static_longitude: Optional[float] = None

    @classmethod
    def from_preferences(cls, prefs: PrefsLike, args: Any = None) -> "LocationConfig":
        defaults = cls()
        config = cls(
            enabled=get_pref_bool(prefs, "enabled", defaults.enabled),
            serial_port=get_pref_str(prefs, "serial_port", defaults.serial_port),
            baud_rate=get_pref_int(prefs, "baud_rate", defaults.baud_rate),
            timeout_ms=get_pref_int(prefs, "timeout_ms", defaults.timeout_ms),
            max_age_ms=get_pref_int(prefs, "max_age_ms", defaults.max_age_ms),
            static_latitude=get_pref_optional_float(prefs, "static_latitude"),
            static_longitude=get_pref_optional_float(prefs, "static_longitude"),
        )
        if args is not None and getattr(args, "no_location", False):
            config.enabled = False
        return config

    def build_provider(self) -> Optional[PositionProvider]:
        if not self.enabled:
            return None
        if self.static_latitude is not None and self.static_longitude is not None:
            return StaticPositionProvider(self.static_latitude, self.static_longitude)
        return NMEAPositionProvider(self.serial_port, self.baud_rate)

    def build_enricher(self) -> LocationEnricher:
        return LocationEnricher(
            self.build_provider(),
            timeout_ms=self.timeout_ms,
            max_age_ms=self.max_age_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
