"""Position sources for the location enricher."""

from __future__ import annotations

import asyncio
import errno
from abc import ABC, abstractmethod

import serial
import serial_asyncio

from promo_capture.core.errors import LocationUnresolved
from promo_capture.core.logging_utils import get_module_logger

from .models import Location, LocationErrorReason
from .nmea import parse_gga

logger = get_module_logger(__name__)

DEFAULT_BAUD_RATE = 9600


class PositionProvider(ABC):
    """One-shot position source.

    ``current_position`` either returns a fix or raises LocationUnresolved
    with a ``LocationErrorReason``. Timeouts are enforced by the caller.
    ``high_accuracy`` is a hint; sources with a single accuracy ignore it.
    """

    @abstractmethod
    async def current_position(self, *, high_accuracy: bool = True) -> Location:
        ...


class StaticPositionProvider(PositionProvider):
    """Always reports the configured coordinate."""

    def __init__(self, latitude: float, longitude: float, accuracy_m: float = 0.0) -> None:
        self._latitude = latitude
        self._longitude = longitude
        self._accuracy_m = accuracy_m

    async def current_position(self, *, high_accuracy: bool = True) -> Location:
        return Location(self._latitude, self._longitude, self._accuracy_m)


class NMEAPositionProvider(PositionProvider):
    """Reads GGA sentences from a serial GPS receiver until a valid fix arrives."""

    def __init__(self, port: str, baudrate: int = DEFAULT_BAUD_RATE, *, min_quality: int = 1) -> None:
        self.port = port
        self.baudrate = baudrate
        self.min_quality = min_quality

    async def _open(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            return await serial_asyncio.open_serial_connection(url=self.port, baudrate=self.baudrate)
        except PermissionError as exc:
            raise LocationUnresolved(
                f"Permission denied for {self.port}", reason=LocationErrorReason.PERMISSION_DENIED
            ) from exc
        except (serial.SerialException, OSError) as exc:
            # pyserial wraps EACCES in SerialException
            if getattr(exc, "errno", None) in (errno.EACCES, errno.EPERM):
                raise LocationUnresolved(
                    f"Permission denied for {self.port}", reason=LocationErrorReason.PERMISSION_DENIED
                ) from exc
            raise LocationUnresolved(
                f"GPS receiver on {self.port} unavailable: {exc}",
                reason=LocationErrorReason.POSITION_UNAVAILABLE,
            ) from exc

    async def current_position(self, *, high_accuracy: bool = True) -> Location:
        reader, writer = await self._open()
        try:
            while True:
                raw = await reader.readline()
                if not raw:
                    raise LocationUnresolved(
                        f"GPS stream on {self.port} closed", reason=LocationErrorReason.POSITION_UNAVAILABLE
                    )
                fix = parse_gga(raw.decode("ascii", errors="ignore"))
                if fix is None or fix.fix_quality < self.min_quality:
                    continue
                logger.debug("GPS fix: %.6f, %.6f (hdop=%s)", fix.latitude, fix.longitude, fix.hdop)
                return Location(fix.latitude, fix.longitude, fix.accuracy_m)
        finally:
            writer.close()
