"""REST API client."""

from .client import ApiClient, cache_key

__all__ = ["ApiClient", "cache_key"]
