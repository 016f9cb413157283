"""
Client caching package.

Holds recently fetched GET responses for a short TTL. Mutations that make
cached reads stale must invalidate them explicitly before writing.
"""

from .ttl_cache import CacheEntry, TTLCache, cache_key, DEFAULT_TTL_SECONDS

__all__ = ["CacheEntry", "TTLCache", "cache_key", "DEFAULT_TTL_SECONDS"]
