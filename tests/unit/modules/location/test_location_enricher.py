"""Unit tests for LocationEnricher."""

import asyncio

import pytest

from promo_capture.core.errors import LocationUnresolved
from promo_capture.modules.Location.enricher import LocationEnricher
from promo_capture.modules.Location.models import Location, LocationError, LocationErrorReason
from promo_capture.modules.Location.providers import PositionProvider, StaticPositionProvider


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingProvider(PositionProvider):
    def __init__(self, *, delay_s: float = 0.0, error: Exception | None = None) -> None:
        self.delay_s = delay_s
        self.error = error
        self.calls = 0
        self.high_accuracy: list[bool] = []

    async def current_position(self, *, high_accuracy: bool = True) -> Location:
        self.calls += 1
        self.high_accuracy.append(high_accuracy)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return Location(55.7558, 37.6173, 12.0, timestamp=0.0)


class TestResolveLocation:
    @pytest.mark.asyncio
    async def test_returns_location_stamped_with_clock(self):
        clock = FakeClock()
        enricher = LocationEnricher(CountingProvider(), clock=clock)

        result = await enricher.resolve_location()

        assert isinstance(result, Location)
        assert (result.latitude, result.longitude, result.accuracy_m) == (55.7558, 37.6173, 12.0)
        assert result.timestamp == clock.now
        assert enricher.error is None

    @pytest.mark.asyncio
    async def test_requests_high_accuracy(self):
        provider = CountingProvider()
        await LocationEnricher(provider).resolve_location()
        assert provider.high_accuracy == [True]

    @pytest.mark.asyncio
    async def test_fresh_cache_is_reused(self):
        clock = FakeClock()
        provider = CountingProvider()
        enricher = LocationEnricher(provider, max_age_ms=60_000, clock=clock)

        first = await enricher.resolve_location()
        clock.now += 30
        second = await enricher.resolve_location()

        assert second is first
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_stale_cache_is_refreshed(self):
        clock = FakeClock()
        provider = CountingProvider()
        enricher = LocationEnricher(provider, max_age_ms=60_000, clock=clock)

        await enricher.resolve_location()
        clock.now += 61
        await enricher.resolve_location()

        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_negative_max_age_bypasses_cache(self):
        provider = CountingProvider()
        enricher = LocationEnricher(provider, clock=FakeClock())

        await enricher.resolve_location()
        await enricher.resolve_location(max_age_ms=-1)

        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_timeout_becomes_error_value(self):
        enricher = LocationEnricher(CountingProvider(delay_s=1.0))

        result = await enricher.resolve_location(timeout_ms=20)

        assert isinstance(result, LocationError)
        assert result.reason is LocationErrorReason.TIMEOUT
        assert enricher.error is result
        assert enricher.current() is None

    @pytest.mark.asyncio
    async def test_permission_denied_is_mapped(self):
        error = LocationUnresolved("denied", reason=LocationErrorReason.PERMISSION_DENIED)
        result = await LocationEnricher(CountingProvider(error=error)).resolve_location()

        assert result.reason is LocationErrorReason.PERMISSION_DENIED
        assert result.describe() == "denied"

    @pytest.mark.asyncio
    async def test_unknown_reason_becomes_position_unavailable(self):
        error = LocationUnresolved("gps gone")
        result = await LocationEnricher(CountingProvider(error=error)).resolve_location()

        assert result.reason is LocationErrorReason.POSITION_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_disabled_provider_is_unavailable(self):
        result = await LocationEnricher(None).resolve_location()

        assert isinstance(result, LocationError)
        assert result.reason is LocationErrorReason.POSITION_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_success_clears_previous_error(self):
        provider = CountingProvider(error=LocationUnresolved("no fix"))
        enricher = LocationEnricher(provider)
        await enricher.resolve_location()
        assert enricher.error is not None

        provider.error = None
        await enricher.resolve_location()

        assert enricher.error is None


class TestBackgroundResolution:
    @pytest.mark.asyncio
    async def test_current_is_none_until_resolved(self):
        enricher = LocationEnricher(StaticPositionProvider(1.0, 2.0))
        assert enricher.current() is None

        await enricher.start()

        location = enricher.current()
        assert (location.latitude, location.longitude) == (1.0, 2.0)

    @pytest.mark.asyncio
    async def test_start_is_idempotent_while_pending(self):
        provider = CountingProvider(delay_s=0.05)
        enricher = LocationEnricher(provider)

        first = enricher.start()
        second = enricher.start()

        assert first is second
        await first
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_close_cancels_pending_lookup(self):
        enricher = LocationEnricher(CountingProvider(delay_s=10.0))
        task = enricher.start()
        await asyncio.sleep(0)

        await enricher.close()

        assert task.cancelled()
        assert not enricher.pending
        assert enricher.current() is None

    @pytest.mark.asyncio
    async def test_close_without_start(self):
        await LocationEnricher(None).close()


class TestLocationModels:
    def test_map_url(self):
        assert Location(1.5, -2.25, 3.0).map_url == "https://maps.google.com/?q=1.5,-2.25"

    def test_default_error_messages(self):
        assert LocationError(LocationErrorReason.TIMEOUT).describe() == "Location request timed out"
