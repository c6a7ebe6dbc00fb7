"""
Business Intelligence Cache

Cache-aside store for merged provider results, keyed by normalized domain.
Rows are upserted on every fresh fetch and treated as absent once expired.

Usage:
    cache = IntelligenceCache(db)
    entry = cache.get("example.com")
    if entry is None:
        entry = cache.put(CacheEntry.create(domain="example.com", ...))
"""

from .config import CacheConfig, get_cache_config
from .intelligence_cache import (
    CacheEntry,
    CacheWriteError,
    IntelligenceCache,
    get_intelligence_cache,
)

__all__ = [
    "CacheConfig",
    "get_cache_config",
    "CacheEntry",
    "CacheWriteError",
    "IntelligenceCache",
    "get_intelligence_cache",
]
