"""
Unit tests for the stale-while-revalidate fetch cache.
Time and backoff sleeps are faked; fetchers are AsyncMocks or small coroutines.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from fetch.cache import FetchCache, FetchOptions, fetch_multiple
from utils.exceptions import FetchFailedError

KEY = "GET /services"


@pytest.fixture
def cache(fetch_options, clock, recording_sleep):
    return FetchCache(options=fetch_options, clock=clock, sleep=recording_sleep)


class TestCacheReads:
    """Test fresh, stale and expired reads."""

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self, cache):
        fetcher = AsyncMock(return_value={"services": []})

        result = await cache.get(KEY, fetcher)

        assert result.data == {"services": []}
        assert not result.is_stale
        assert cache.state(KEY) == "fresh"
        fetcher.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fresh_hit_skips_network(self, cache, clock):
        fetcher = AsyncMock(return_value={"services": ["hair"]})

        first = await cache.get(KEY, fetcher)
        clock.advance(59)
        second = await cache.get(KEY, fetcher)

        assert second.data is first.data
        assert not second.is_stale
        assert fetcher.await_count == 1

    @pytest.mark.asyncio
    async def test_stale_entry_served_and_refreshed_once(self, cache, clock):
        fetcher = AsyncMock(side_effect=["old", "new", "newer"])
        await cache.get(KEY, fetcher)
        clock.advance(90)

        stale = await cache.get(KEY, fetcher)
        again = await cache.get(KEY, fetcher)
        assert cache.is_fetching(KEY)
        await cache.join()

        assert stale.data == "old" and stale.is_stale
        assert again.data == "old" and again.is_stale
        # One initial fetch plus a single background refresh
        assert fetcher.await_count == 2
        assert cache.peek(KEY).data == "new"
        assert cache.state(KEY) == "fresh"

    @pytest.mark.asyncio
    async def test_expired_entry_fetched_synchronously(self, cache, clock):
        fetcher = AsyncMock(side_effect=["old", "new"])
        await cache.get(KEY, fetcher)
        clock.advance(121)

        assert cache.state(KEY) == "expired"
        result = await cache.get(KEY, fetcher)

        assert result.data == "new"
        assert not result.is_stale

    @pytest.mark.asyncio
    async def test_force_refresh(self, cache):
        fetcher = AsyncMock(side_effect=["old", "new"])
        await cache.get(KEY, fetcher)

        result = await cache.get(KEY, fetcher, force_refresh=True)

        assert result.data == "new"

    @pytest.mark.asyncio
    async def test_per_key_stale_time(self, cache, clock):
        fetcher = AsyncMock(side_effect=["old", "new"])
        await cache.get(KEY, fetcher, stale_time=10)
        clock.advance(11)

        assert cache.state(KEY) == "stale"

    @pytest.mark.asyncio
    async def test_refetch_uses_registered_fetcher(self, cache):
        fetcher = AsyncMock(side_effect=["old", "new"])
        await cache.get(KEY, fetcher)

        result = await cache.refetch(KEY)

        assert result.data == "new"

    @pytest.mark.asyncio
    async def test_refetch_unknown_key(self, cache):
        with pytest.raises(KeyError):
            await cache.refetch("GET /unknown")

    @pytest.mark.asyncio
    async def test_independent_instances(self, fetch_options, clock):
        first = FetchCache(options=fetch_options, clock=clock)
        second = FetchCache(options=fetch_options, clock=clock)

        await first.get(KEY, AsyncMock(return_value="data"))

        assert KEY in first
        assert KEY not in second


class TestConcurrency:
    """Test coalescing and out-of-order completion."""

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_latest_result(self, cache):
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.Event().wait()

        first = asyncio.create_task(cache.get(KEY, slow))
        await started.wait()
        second = asyncio.create_task(
            cache.get(KEY, AsyncMock(return_value="second"), force_refresh=True)
        )

        results = await asyncio.gather(first, second)

        assert [r.data for r in results] == ["second", "second"]
        assert cache.peek(KEY).data == "second"
        assert not cache.is_fetching(KEY)

    @pytest.mark.asyncio
    async def test_late_superseded_response_discarded(self, cache):
        """A response that ignores cancellation and lands last must not win."""
        started = asyncio.Event()
        release = asyncio.Event()
        finished = asyncio.Event()

        async def stubborn():
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                pass
            await release.wait()
            finished.set()
            return "first"

        first = asyncio.create_task(cache.get(KEY, stubborn))
        await started.wait()
        second = await cache.get(KEY, AsyncMock(return_value="second"), force_refresh=True)

        release.set()
        await finished.wait()
        await asyncio.sleep(0)

        assert second.data == "second"
        assert (await first).data == "second"
        assert cache.peek(KEY).data == "second"

    @pytest.mark.asyncio
    async def test_background_refresh_joins_in_flight_request(self, cache, clock):
        release = asyncio.Event()
        calls = []

        async def fetcher():
            calls.append(1)
            if len(calls) > 1:
                await release.wait()
            return len(calls)

        await cache.get(KEY, fetcher)
        clock.advance(90)

        await cache.get(KEY, fetcher)
        await asyncio.sleep(0)
        assert cache.on_window_focus() == 0
        await cache.get(KEY, fetcher)

        release.set()
        await cache.join()
        assert len(calls) == 2


class TestRetries:
    """Test retry with linear backoff."""

    @pytest.mark.asyncio
    async def test_recovers_within_retry_budget(self, cache, recording_sleep):
        fetcher = AsyncMock(
            side_effect=[RuntimeError("a"), RuntimeError("b"), RuntimeError("c"), "ok"]
        )

        result = await cache.get(KEY, fetcher)

        assert result.data == "ok"
        assert recording_sleep.delays == [0.5, 1.0, 1.5]
        assert cache.peek(KEY).data == "ok"

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise(self, cache, recording_sleep):
        fetcher = AsyncMock(side_effect=RuntimeError("down"))

        with pytest.raises(FetchFailedError) as exc_info:
            await cache.get(KEY, fetcher)

        assert exc_info.value.attempts == 4
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert fetcher.await_count == 4
        assert len(recording_sleep.delays) == 3
        assert KEY not in cache
        assert not cache.is_fetching(KEY)

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_entry(self, cache):
        fetcher = AsyncMock(side_effect=["good"] + [RuntimeError("down")] * 4)
        await cache.get(KEY, fetcher)

        with pytest.raises(FetchFailedError):
            await cache.get(KEY, fetcher, force_refresh=True)

        assert cache.peek(KEY).data == "good"

    @pytest.mark.asyncio
    async def test_failed_background_refresh_is_silent(self, cache, clock):
        fetcher = AsyncMock(side_effect=["good"] + [RuntimeError("down")] * 4)
        await cache.get(KEY, fetcher)
        clock.advance(90)

        result = await cache.get(KEY, fetcher)
        await cache.join()

        assert result.data == "good"
        assert cache.peek(KEY).data == "good"

    @pytest.mark.asyncio
    async def test_no_retries_configured(self, clock, recording_sleep):
        cache = FetchCache(
            options=FetchOptions(retry_count=0), clock=clock, sleep=recording_sleep
        )

        with pytest.raises(FetchFailedError):
            await cache.get(KEY, AsyncMock(side_effect=RuntimeError("down")))

        assert recording_sleep.delays == []


class TestLifecycle:
    """Test invalidation, cancellation and focus/reconnect triggers."""

    @pytest.mark.asyncio
    async def test_invalidate_removes_and_refetches(self, cache):
        fetcher = AsyncMock(side_effect=["old", "new"])
        await cache.get(KEY, fetcher)

        cache.invalidate(KEY)
        assert KEY not in cache

        await cache.join()
        assert cache.peek(KEY).data == "new"

    @pytest.mark.asyncio
    async def test_clear_supersedes_in_flight_requests(self, cache):
        started = asyncio.Event()
        release = asyncio.Event()
        calls = []

        async def fetcher():
            calls.append(1)
            if len(calls) == 1:
                started.set()
                await release.wait()
                return "pre-booking"
            return "post-booking"

        waiting = asyncio.create_task(cache.get("GET /slots", fetcher))
        await started.wait()

        cache.clear()
        release.set()
        result = await waiting
        await cache.join()

        assert result.data == "post-booking"
        assert cache.peek("GET /slots").data == "post-booking"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_clear_without_requests_in_flight(self, cache):
        await cache.get(KEY, AsyncMock(return_value="data"))

        cache.clear()

        assert KEY not in cache
        assert not cache.is_fetching(KEY)

    def test_defaults_come_from_settings(self, mock_settings):
        mock_settings.fetch_stale_time = 42.0

        assert FetchCache().options.stale_time == 42.0
        assert FetchCache().options.retry_delay == 0.5

    @pytest.mark.asyncio
    async def test_invalidate_unknown_key(self, cache):
        cache.invalidate("GET /unknown")
        assert not cache.is_fetching("GET /unknown")

    @pytest.mark.asyncio
    async def test_cancel_stops_request_without_touching_cache(self, cache):
        fetcher_calls = []
        started = asyncio.Event()

        async def fetcher():
            fetcher_calls.append(1)
            if len(fetcher_calls) == 1:
                return "cached"
            started.set()
            await asyncio.Event().wait()

        await cache.get(KEY, fetcher)
        waiting = asyncio.create_task(cache.get(KEY, fetcher, force_refresh=True))
        await started.wait()

        cache.cancel(KEY)

        with pytest.raises(asyncio.CancelledError):
            await waiting
        assert cache.peek(KEY).data == "cached"
        assert not cache.is_fetching(KEY)

    @pytest.mark.asyncio
    async def test_cancel_stops_pending_retry(self, fetch_options, clock):
        sleeping = asyncio.Event()

        async def slow_sleep(delay):
            sleeping.set()
            await asyncio.Event().wait()

        cache = FetchCache(options=fetch_options, clock=clock, sleep=slow_sleep)
        fetcher = AsyncMock(side_effect=RuntimeError("down"))
        waiting = asyncio.create_task(cache.get(KEY, fetcher))
        await sleeping.wait()

        cache.close()

        with pytest.raises(asyncio.CancelledError):
            await waiting
        assert fetcher.await_count == 1
        assert KEY not in cache

    @pytest.mark.asyncio
    async def test_focus_refreshes_only_stale_entries(self, cache, clock):
        services = AsyncMock(side_effect=["s1", "s2"])
        stylists = AsyncMock(side_effect=["t1", "t2"])
        await cache.get("GET /services", services, stale_time=30)
        await cache.get("GET /stylists", stylists)
        clock.advance(45)

        assert cache.on_window_focus() == 1
        await cache.join()

        assert cache.peek("GET /services").data == "s2"
        assert cache.peek("GET /stylists").data == "t1"

    @pytest.mark.asyncio
    async def test_reconnect_respects_staleness(self, cache, clock):
        fetcher = AsyncMock(side_effect=["old", "new"])
        await cache.get(KEY, fetcher)

        assert cache.on_reconnect() == 0
        clock.advance(61)
        assert cache.on_reconnect() == 1
        await cache.join()
        assert fetcher.await_count == 2

    @pytest.mark.asyncio
    async def test_triggers_can_be_disabled(self, clock):
        cache = FetchCache(
            options=FetchOptions(refetch_on_window_focus=False, refetch_on_reconnect=False),
            clock=clock,
        )
        await cache.get(KEY, AsyncMock(return_value="data"))
        clock.advance(10_000)

        assert cache.on_window_focus() == 0
        assert cache.on_reconnect() == 0


class TestFetchMultiple:
    """Test parallel requests."""

    @pytest.mark.asyncio
    async def test_partial_failure(self):
        result = await fetch_multiple(
            {
                "services": AsyncMock(return_value=["hair"]),
                "stylists": AsyncMock(side_effect=RuntimeError("HTTP error! status: 500")),
            }
        )

        assert result.data == {"services": ["hair"], "stylists": None}
        assert result.errors == {"services": None, "stylists": "HTTP error! status: 500"}
        assert result.has_error
