"""Client-side fetch cache with stale-while-revalidate and retries."""

from .cache import (
    CacheEntry,
    FetchCache,
    FetchOptions,
    FetchResult,
    MultiFetchResult,
    fetch_multiple,
)

__all__ = [
    "CacheEntry",
    "FetchCache",
    "FetchOptions",
    "FetchResult",
    "MultiFetchResult",
    "fetch_multiple",
]
