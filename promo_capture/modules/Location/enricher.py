"""Best-effort location lookup attached to a delivery as enrichment."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional, Union

from promo_capture.core.errors import LocationUnresolved
from promo_capture.core.logging_utils import get_module_logger

from .models import Location, LocationError, LocationErrorReason
from .providers import PositionProvider

logger = get_module_logger(__name__)

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_MAX_AGE_MS = 60_000

LocationResult = Union[Location, LocationError]


class LocationEnricher:
    """Resolves a position once, with a bounded timeout and a fix cache.

    Nothing here raises into the capture or delivery flow: failures come
    back as ``LocationError`` values and ``current()`` simply stays ``None``.
    """

    def __init__(
        self,
        provider: Optional[PositionProvider],
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._provider = provider
        self._timeout_ms = timeout_ms
        self._max_age_ms = max_age_ms
        self._clock = clock
        self._cached: Optional[Location] = None
        self._error: Optional[LocationError] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def error(self) -> Optional[LocationError]:
        return self._error

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def _fresh_cache(self, max_age_ms: int) -> Optional[Location]:
        if self._cached is None:
            return None
        if self._cached.age_s(self._clock()) * 1000.0 > max_age_ms:
            return None
        return self._cached

    async def resolve_location(
        self,
        timeout_ms: Optional[int] = None,
        max_age_ms: Optional[int] = None,
    ) -> LocationResult:
        timeout_ms = self._timeout_ms if timeout_ms is None else timeout_ms
        max_age_ms = self._max_age_ms if max_age_ms is None else max_age_ms

        cached = self._fresh_cache(max_age_ms)
        if cached is not None:
            logger.debug("Using cached location (%.0fs old)", cached.age_s(self._clock()))
            return cached

        if self._provider is None:
            return self._fail(LocationErrorReason.POSITION_UNAVAILABLE, "Location lookup disabled")

        try:
            location = await asyncio.wait_for(
                self._provider.current_position(high_accuracy=True),
                timeout=timeout_ms / 1000.0,
            )
        except asyncio.TimeoutError:
            return self._fail(LocationErrorReason.TIMEOUT, f"No fix within {timeout_ms} ms")
        except LocationUnresolved as exc:
            reason = exc.reason if isinstance(exc.reason, LocationErrorReason) else LocationErrorReason.POSITION_UNAVAILABLE
            return self._fail(reason, str(exc))

        self._cached = Location(location.latitude, location.longitude, location.accuracy_m, self._clock())
        self._error = None
        logger.info(
            "Location resolved: %.6f, %.6f (+/- %.0f m)",
            location.latitude, location.longitude, location.accuracy_m,
        )
        return self._cached

    def _fail(self, reason: LocationErrorReason, message: str) -> LocationError:
        error = LocationError(reason, message)
        self._error = error
        logger.warning("Location unresolved (%s): %s", reason.value, error.describe())
        return error

    # ------------------------------------------------------------------
    # Background use

    def start(self) -> asyncio.Task:
        """Begin resolving in the background; safe to call repeatedly."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.resolve_location(), name="location-resolve")
        return self._task

    def current(self) -> Optional[Location]:
        """The resolved location if available right now; never waits."""
        return self._fresh_cache(self._max_age_ms)

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


__all__ = ["LocationEnricher", "LocationResult", "DEFAULT_TIMEOUT_MS", "DEFAULT_MAX_AGE_MS"]
