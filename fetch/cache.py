"""
Stale-while-revalidate cache for API reads.

Entries are fresh until ``stale_time``, served-but-refreshed until
``cache_time`` and ignored after that. Each key has at most one request
in flight: a forced refresh or cache miss supersedes the running request
(its callers receive the newer result), a background refresh joins it.
Generation numbers keep a superseded response from overwriting a newer
entry.
"""

import asyncio
import functools
import itertools
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from config import settings
from utils.exceptions import FetchFailedError
from utils.logging_config import get_logger

logger = get_logger(__name__, log_file="fetch.log")

Fetcher = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]

STATE_MISSING = "missing"
STATE_FRESH = "fresh"
STATE_STALE = "stale"
STATE_EXPIRED = "expired"


@dataclass(frozen=True)
class CacheEntry:
    """Cached response for one key."""

    data: Any
    timestamp: float
    stale_time: float


@dataclass
class FetchOptions:
    """Cache timing and retry configuration (seconds)."""

    stale_time: float = 5 * 60
    cache_time: float = 10 * 60
    retry_count: int = 3
    retry_delay: float = 1.0
    refetch_on_window_focus: bool = True
    refetch_on_reconnect: bool = True

    @classmethod
    def from_settings(cls) -> "FetchOptions":
        return cls(
            stale_time=settings.fetch_stale_time,
            cache_time=settings.fetch_cache_time,
            retry_count=settings.fetch_retry_count,
            retry_delay=settings.fetch_retry_delay,
            refetch_on_window_focus=settings.refetch_on_window_focus,
            refetch_on_reconnect=settings.refetch_on_reconnect,
        )


@dataclass(frozen=True)
class FetchResult:
    """Data returned by ``FetchCache.get``."""

    data: Any
    is_stale: bool = False


@dataclass
class _Flight:
    generation: int
    task: "asyncio.Task[None]"


def _mark_retrieved(future: "asyncio.Future[Any]") -> None:
    # Background refreshes may have no awaiting caller; failures are logged in _run
    if not future.cancelled():
        future.exception()


class FetchCache:
    """
    Keyed in-memory cache with background revalidation and retries.

    Create one per application and pass it to whatever needs API reads.
    All methods must be called from the event loop that runs the fetches.
    """

    def __init__(
        self,
        options: Optional[FetchOptions] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize the cache.

        Args:
            options: Timing and retry configuration (defaults to settings)
            clock: Monotonic time source in seconds
            sleep: Awaitable used for retry backoff
        """
        self.options = options or FetchOptions.from_settings()
        self._clock = clock
        self._sleep = sleep
        self._entries: Dict[str, CacheEntry] = {}
        self._fetchers: Dict[str, Fetcher] = {}
        self._stale_times: Dict[str, float] = {}
        self._flights: Dict[str, _Flight] = {}
        self._waiters: Dict[str, "asyncio.Future[Any]"] = {}
        self._generations = itertools.count(1)

    # ========== Inspection ==========

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry for ``key`` regardless of its age."""
        return self._entries.get(key)

    def state(self, key: str) -> str:
        """Classify the entry for ``key`` as missing, fresh, stale or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return STATE_MISSING

        age = self._clock() - entry.timestamp
        if age > self.options.cache_time:
            return STATE_EXPIRED
        if age > entry.stale_time:
            return STATE_STALE
        return STATE_FRESH

    def is_fetching(self, key: str) -> bool:
        return key in self._flights

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ========== Reads ==========

    async def get(
        self,
        key: str,
        fetcher: Fetcher,
        force_refresh: bool = False,
        stale_time: Optional[float] = None,
    ) -> FetchResult:
        """
        Get data for ``key``, fetching it if needed.

        Fresh and stale entries are returned without waiting; a stale
        entry also starts a background refresh. Missing or expired
        entries (or ``force_refresh``) wait for the network.

        Args:
            key: Request identifier (see ``api.client.cache_key``)
            fetcher: Zero-argument coroutine factory performing the request
            force_refresh: Skip the cached entry
            stale_time: Per-key freshness window overriding the default

        Returns:
            FetchResult with the data and whether it was stale

        Raises:
            FetchFailedError: If the request failed after all retries
        """
        self._fetchers[key] = fetcher
        if stale_time is not None:
            self._stale_times[key] = stale_time

        state = self.state(key)
        if not force_refresh and state in (STATE_FRESH, STATE_STALE):
            entry = self._entries[key]
            if state == STATE_STALE:
                logger.debug(f"Serving stale entry for {key}")
                self._revalidate(key)
            else:
                logger.debug(f"Cache hit for {key}")
            return FetchResult(entry.data, is_stale=state == STATE_STALE)

        logger.debug(f"Cache {state} for {key}, fetching")
        data = await asyncio.shield(self._start(key))
        return FetchResult(data)

    async def refetch(self, key: str) -> FetchResult:
        """
        Force a network refresh of ``key`` with its last fetcher.

        Raises:
            KeyError: If ``key`` was never requested
        """
        return await self.get(key, self._fetchers[key], force_refresh=True)

    def invalidate(self, key: str) -> None:
        """Drop the entry for ``key`` and start fetching it again."""
        self._entries.pop(key, None)
        logger.info(f"Invalidated cache entry {key}")

        if key in self._fetchers:
            self._start(key)

    def on_window_focus(self) -> int:
        """Refresh stale entries when the application regains focus."""
        if not self.options.refetch_on_window_focus:
            return 0
        return self.revalidate_stale()

    def on_reconnect(self) -> int:
        """Refresh stale entries when the network comes back."""
        if not self.options.refetch_on_reconnect:
            return 0
        return self.revalidate_stale()

    def revalidate_stale(self) -> int:
        """
        Start background refreshes for every known key past its freshness window.

        Returns:
            Number of refreshes started
        """
        started = 0
        for key in list(self._fetchers):
            if self.state(key) in (STATE_STALE, STATE_EXPIRED) and self._revalidate(key):
                started += 1
        return started

    # ========== Lifecycle ==========

    def cancel(self, key: str) -> None:
        """
        Stop the in-flight request and pending retries for ``key``.

        Cached data is left untouched; callers still waiting on the
        request are cancelled.
        """
        flight = self._flights.pop(key, None)
        if flight is not None:
            flight.task.cancel()
            logger.debug(f"Cancelled request for {key}")

        waiter = self._waiters.pop(key, None)
        if waiter is not None and not waiter.done():
            waiter.cancel()

    def close(self) -> None:
        """Cancel all in-flight requests and forget registered fetchers."""
        for key in list(self._flights):
            self.cancel(key)
        self._fetchers.clear()

    def clear(self) -> None:
        """
        Remove every cached entry.

        Requests already in flight were started against the old data, so
        they are superseded by new ones; their waiters get the new result.
        """
        self._entries.clear()
        for key in list(self._flights):
            self._start(key)
        logger.info("Cleared fetch cache")

    async def join(self) -> None:
        """Wait until no request is in flight."""
        while self._flights:
            tasks = [flight.task for flight in self._flights.values()]
            await asyncio.gather(*tasks, return_exceptions=True)

    # ========== Internals ==========

    def _revalidate(self, key: str) -> bool:
        if key in self._flights:
            # Join the request already running for this key
            return False
        self._start(key)
        return True

    def _start(self, key: str) -> "asyncio.Future[Any]":
        previous = self._flights.get(key)
        if previous is not None:
            logger.debug(f"Superseding in-flight request for {key}")
            previous.task.cancel()

        waiter = self._waiters.get(key)
        if waiter is None:
            waiter = asyncio.get_running_loop().create_future()
            waiter.add_done_callback(_mark_retrieved)
            self._waiters[key] = waiter

        generation = next(self._generations)
        task = asyncio.create_task(self._run(key, self._fetchers[key], generation))
        task.add_done_callback(functools.partial(self._discard, key, generation))
        self._flights[key] = _Flight(generation, task)
        return waiter

    def _is_current(self, key: str, generation: int) -> bool:
        flight = self._flights.get(key)
        return flight is not None and flight.generation == generation

    async def _run(self, key: str, fetcher: Fetcher, generation: int) -> None:
        attempt = 0
        while True:
            try:
                data = await fetcher()
            except Exception as e:
                if attempt < self.options.retry_count:
                    attempt += 1
                    delay = self.options.retry_delay * attempt
                    logger.warning(
                        f"Fetch for {key} failed (attempt {attempt}/"
                        f"{self.options.retry_count}): {e}. Retrying in {delay}s..."
                    )
                    await self._sleep(delay)
                    continue

                logger.error(f"Fetch for {key} failed after {attempt + 1} attempt(s): {e}")
                error = FetchFailedError(key, attempt + 1, e)
                error.__cause__ = e
                self._settle(key, generation, error=error)
                return

            self._commit(key, generation, data)
            return

    def _commit(self, key: str, generation: int, data: Any) -> None:
        if not self._is_current(key, generation):
            logger.debug(f"Discarding superseded response for {key}")
            return

        self._entries[key] = CacheEntry(
            data=data,
            timestamp=self._clock(),
            stale_time=self._stale_times.get(key, self.options.stale_time),
        )
        self._settle(key, generation, result=data)

    def _settle(
        self,
        key: str,
        generation: int,
        result: Any = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if not self._is_current(key, generation):
            return

        del self._flights[key]
        waiter = self._waiters.pop(key, None)
        if waiter is None or waiter.done():
            return

        if error is not None:
            waiter.set_exception(error)
        else:
            waiter.set_result(result)

    def _discard(self, key: str, generation: int, task: "asyncio.Task[None]") -> None:
        # Settled, superseded and cancel()-ed requests are no longer current;
        # anything else ended abnormally (e.g. cancelled from outside)
        if not self._is_current(key, generation):
            return

        del self._flights[key]
        waiter = self._waiters.pop(key, None)
        if waiter is not None and not waiter.done():
            waiter.cancel()


@dataclass
class MultiFetchResult:
    """Per-key outcome of ``fetch_multiple``."""

    data: Dict[str, Any]
    errors: Dict[str, Optional[str]]

    @property
    def has_error(self) -> bool:
        return any(self.errors.values())


async def fetch_multiple(requests: Mapping[str, Fetcher]) -> MultiFetchResult:
    """
    Run several independent requests in parallel.

    A failing request does not affect the others: its key gets ``None``
    data and an error message.
    """

    async def run_one(key: str, fetcher: Fetcher) -> None:
        try:
            data[key] = await fetcher()
            errors[key] = None
        except Exception as e:
            logger.warning(f"Parallel fetch for {key} failed: {e}")
            data[key] = None
            errors[key] = str(e) or "An error occurred"

    data: Dict[str, Any] = {}
    errors: Dict[str, Optional[str]] = {}
    await asyncio.gather(*(run_one(key, fetcher) for key, fetcher in requests.items()))
    return MultiFetchResult(data=data, errors=errors)
