"""
Directory caching package.

Provides the in-process store that keeps normalized upstream results.
Freshness policy is decided by the query service, not by the store.
"""

from .cache_store import CacheEntry, CacheStore

__all__ = ["CacheEntry", "CacheStore"]
