"""
Cache Configuration

TTL for merged provider results. Paid provider calls dominate cost, so a
domain is refetched at most once per TTL unless the caller skips the cache.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache

from src.utils.config import get_settings


@dataclass
class CacheConfig:
    """
    Main cache configuration.

    Settings can be overridden via environment variables:
    - CACHE_ENABLED: Enable/disable cache reads globally
    - CACHE_TTL_HOURS: Lifetime of a cached record
    """

    enabled: bool = field(default_factory=lambda: os.getenv(
        "CACHE_ENABLED",
        "true"
    ).lower() == "true")

    ttl: timedelta = field(default_factory=lambda: timedelta(
        hours=get_settings().CACHE_TTL_HOURS
    ))


@lru_cache(maxsize=1)
def get_cache_config() -> CacheConfig:
    """Get singleton cache configuration."""
    return CacheConfig()
