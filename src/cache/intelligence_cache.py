"""
Business Intelligence Cache Implementation

PostgreSQL-backed cache using the business_intelligence_cache table.
One row per normalized domain, upserted on every completed fresh fetch.

A row whose cache_expires_at is not in the future is treated as absent,
even though it stays in the table until the next overwrite.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from src.database.models import BusinessIntelligenceCache
from src.cache.config import get_cache_config


logger = logging.getLogger(__name__)

# Backends with a native INSERT ... ON CONFLICT
_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

_PROCESS_STATS: Dict[str, int] = {
    "hits": 0,
    "misses": 0,
    "expired": 0,
    "writes": 0,
}


class CacheWriteError(Exception):
    """Raised when a cache upsert fails."""

    def __init__(self, message: str, domain: Optional[str] = None):
        super().__init__(message)
        self.domain = domain


@dataclass
class CacheEntry:
    """Merged provider data for one domain plus quality and provenance."""
    domain: str
    company_data: Optional[Dict[str, Any]] = None
    seo_data: Optional[Dict[str, Any]] = None
    tech_data: Optional[Dict[str, Any]] = None
    data_quality_score: int = 0
    total_api_cost: float = 0.0
    sources_complete: List[str] = field(default_factory=list)
    sources_failed: List[str] = field(default_factory=list)
    expires_at: datetime = field(default_factory=datetime.utcnow)
    created_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        domain: str,
        ttl: Optional[timedelta] = None,
        now: Optional[datetime] = None,
        **fields,
    ) -> "CacheEntry":
        """Build a fresh entry expiring at now + ttl."""
        now = now or datetime.utcnow()
        ttl = ttl if ttl is not None else get_cache_config().ttl
        return cls(domain=domain, expires_at=now + ttl, created_at=now, **fields)

    @classmethod
    def from_record(cls, record: BusinessIntelligenceCache) -> "CacheEntry":
        return cls(
            domain=record.company_domain,
            company_data=record.apollo_data,
            seo_data=record.dataforseo_data,
            tech_data=record.wappalyzer_data,
            data_quality_score=record.data_quality_score or 0,
            total_api_cost=float(record.total_api_cost or 0),
            sources_complete=list(record.data_sources_complete or []),
            sources_failed=list(record.data_sources_failed or []),
            expires_at=record.cache_expires_at,
            created_at=record.created_at,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Expired once expires_at is not strictly in the future."""
        return self.expires_at <= (now or datetime.utcnow())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "company_data": self.company_data,
            "seo_data": self.seo_data,
            "tech_data": self.tech_data,
            "data_quality_score": self.data_quality_score,
            "total_api_cost": self.total_api_cost,
            "sources_complete": self.sources_complete,
            "sources_failed": self.sources_failed,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class IntelligenceCache:
    """
    PostgreSQL-based cache for merged provider results.

    Uses the request's database session; no singleton required.
    """

    def __init__(self, db: Session, stats: Optional[Dict[str, int]] = None):
        self.db = db
        # Counters outlive the request session unless a private dict is passed
        self._stats = stats if stats is not None else _PROCESS_STATS

    def get(self, domain: str, now: Optional[datetime] = None) -> Optional[CacheEntry]:
        """
        Get a live cache entry.

        Args:
            domain: Normalized domain
            now: Reference time (defaults to utcnow)

        Returns:
            CacheEntry, or None if absent, expired or unreadable
        """
        try:
            record = self.db.query(BusinessIntelligenceCache).filter(
                BusinessIntelligenceCache.company_domain == domain,
            ).populate_existing().first()

            if record is None:
                self._stats["misses"] += 1
                return None

            entry = CacheEntry.from_record(record)
            if entry.is_expired(now):
                self._stats["expired"] += 1
                self._stats["misses"] += 1
                logger.debug(f"Cache entry for {domain} expired at {entry.expires_at}")
                return None

            self._stats["hits"] += 1
            return entry

        except Exception as e:
            logger.error(f"Cache get error for {domain}: {e}")
            # A failed read leaves the transaction aborted on PostgreSQL
            self.db.rollback()
            self._stats["misses"] += 1
            return None

    def put(self, entry: CacheEntry) -> CacheEntry:
        """
        Upsert an entry keyed by domain.

        A single INSERT ... ON CONFLICT DO UPDATE, so concurrent writers for
        the same domain never collide on the unique key; the last one wins.

        Raises:
            CacheWriteError: If the write fails (session is rolled back)
        """
        values = {
            "company_domain": entry.domain,
            "apollo_data": entry.company_data,
            "dataforseo_data": entry.seo_data,
            "wappalyzer_data": entry.tech_data,
            "data_quality_score": entry.data_quality_score,
            "total_api_cost": entry.total_api_cost,
            "data_sources_complete": list(entry.sources_complete),
            "data_sources_failed": list(entry.sources_failed),
            "cache_expires_at": entry.expires_at,
            "created_at": entry.created_at or datetime.utcnow(),
            "updated_at": datetime.utcnow(),
        }

        try:
            dialect = self.db.get_bind().dialect.name
            if dialect not in _UPSERT_DIALECTS:
                raise ValueError(f"Unsupported database backend: {dialect}")

            insert = _UPSERT_DIALECTS[dialect]
            stmt = insert(BusinessIntelligenceCache).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["company_domain"],
                set_={
                    column: stmt.excluded[column]
                    for column in values
                    if column != "company_domain"
                },
            )
            self.db.execute(stmt)
            self.db.commit()
            self._stats["writes"] += 1
            logger.debug(f"Cached {entry.domain} until {entry.expires_at}")
            return entry

        except Exception as e:
            logger.error(f"Cache set error for {entry.domain}: {e}")
            self.db.rollback()
            raise CacheWriteError(f"Failed to cache {entry.domain}: {e}", domain=entry.domain) from e

    def get_stats(self) -> Dict:
        """Get cache statistics."""
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0

        return {
            "enabled": get_cache_config().enabled,
            "backend": "database",
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "expired": self._stats["expired"],
            "writes": self._stats["writes"],
            "hit_rate_percent": round(hit_rate, 2),
        }

    def health_check(self, now: Optional[datetime] = None) -> Dict:
        """
        Simple health check.

        Just verifies we can query the table.
        """
        try:
            now = now or datetime.utcnow()
            total = self.db.query(BusinessIntelligenceCache).count()
            live = self.db.query(BusinessIntelligenceCache).filter(
                BusinessIntelligenceCache.cache_expires_at > now,
            ).count()

            return {
                "healthy": True,
                "status": "connected",
                "cached_entries": total,
                "live_entries": live,
                "backend": "database",
            }

        except Exception as e:
            return {
                "healthy": False,
                "status": "error",
                "error": str(e),
                "backend": "database",
            }


def get_intelligence_cache(db: Session) -> IntelligenceCache:
    """Get an IntelligenceCache bound to the given session."""
    return IntelligenceCache(db)
