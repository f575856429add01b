"""Minimal NMEA parsing: enough of GGA to produce a position fix."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Rough user-equivalent range error; accuracy estimate = HDOP * UERE.
UERE_M = 5.0


def _parse_float(value: str | None) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _parse_int(value: str | None) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_latlon(value: str | None, direction: str | None, *, is_lat: bool) -> Optional[float]:
    """Parse NMEA lat/lon format (DDMM.MMMM or DDDMM.MMMM) to decimal degrees."""
    if not value or not direction:
        return None
    try:
        deg_len = 2 if is_lat else 3
        if len(value) < deg_len:
            return None
        degrees = int(value[:deg_len])
        minutes = float(value[deg_len:])
    except ValueError:
        return None
    decimal = degrees + minutes / 60.0
    if direction.upper() in {"S", "W"}:
        decimal *= -1.0
    return decimal


def validate_checksum(sentence: str) -> bool:
    if not sentence.startswith("$") or "*" not in sentence:
        return False
    try:
        payload, checksum_str = sentence[1:].split("*", 1)
        expected = int(checksum_str[:2], 16)
    except (ValueError, IndexError):
        return False
    calculated = 0
    for char in payload:
        calculated ^= ord(char)
    return calculated == expected


@dataclass(frozen=True)
class GGAFix:
    latitude: float
    longitude: float
    fix_quality: int
    satellites: Optional[int]
    hdop: Optional[float]

    @property
    def accuracy_m(self) -> float:
        # No HDOP reported: assume a mediocre fix rather than claim precision
        return (self.hdop if self.hdop is not None else 10.0) * UERE_M


def parse_gga(sentence: str, *, validate: bool = True) -> Optional[GGAFix]:
    """Return a fix for a valid GGA sentence, ``None`` for anything else."""
    sentence = sentence.strip()
    if not sentence.startswith("$"):
        return None
    if validate and not validate_checksum(sentence):
        return None

    payload = sentence[1:].split("*", 1)[0]
    parts = payload.split(",")
    if len(parts) < 9 or parts[0][-3:].upper() != "GGA":
        return None

    fields = parts[1:]
    lat = _parse_latlon(fields[1], fields[2], is_lat=True)
    lon = _parse_latlon(fields[3], fields[4], is_lat=False)
    fix_quality = _parse_int(fields[5]) or 0
    if lat is None or lon is None or fix_quality <= 0:
        return None

    return GGAFix(
        latitude=lat,
        longitude=lon,
        fix_quality=fix_quality,
        satellites=_parse_int(fields[6]),
        hdop=_parse_float(fields[7]),
    )
