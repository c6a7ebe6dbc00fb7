"""
Business Intelligence Service

Orchestrates one analysis per inbound request:
1. Lookup   - normalize the domain and check the cache (unless skipped)
2. Fan-out  - query every configured provider concurrently
3. Assemble - per-slot result, absent on failure
4. Score    - fixed-weight data quality score and total billed cost
5. Persist  - upsert the cache entry (non-fatal on failure)
6. Detect   - with a client id, run opportunity detection and store results
7. Respond  - merged data plus metadata

Provider failures never fail the request; persistence failures become
warnings. Only invalid input and truly unexpected errors propagate.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from src.cache.config import CacheConfig, get_cache_config
from src.cache.intelligence_cache import CacheEntry, CacheWriteError, IntelligenceCache
from src.database.repository import OpportunityStore, OpportunityStoreError
from src.integrations.config import APOLLO, DATAFORSEO, WAPPALYZER, ProviderClients
from src.integrations.dataforseo import DataForSEOError
from src.scoring.opportunity import Opportunity, detect_opportunities
from src.scoring.quality import calculate_data_quality_score
from src.utils.config import Settings, get_settings
from src.utils.domain import build_site_url, normalize_domain

logger = logging.getLogger(__name__)


class InvalidRequestError(ValueError):
    """Raised for caller mistakes detected before any I/O."""

    def __init__(self, error: str, message: Optional[str] = None):
        super().__init__(error)
        self.message = message


class SourceStatus(str, Enum):
    """Outcome of one provider slot."""
    SUCCESS = "success"
    FAILED = "failed"
    NOT_CONFIGURED = "not_configured"


@dataclass
class SourceResult:
    """Result of one provider slot in the fan-out."""
    source: str
    status: SourceStatus
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    duration_ms: int = 0
    cost: float = 0.0

    @property
    def has_data(self) -> bool:
        return self.status == SourceStatus.SUCCESS and self.data is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "cost": self.cost,
        }


def summarize_opportunities(opportunities: List[Opportunity]) -> Optional[Dict[str, int]]:
    """Count/critical/high/quick-win summary, or None when nothing was stored."""
    if not opportunities:
        return None

    return {
        "count": len(opportunities),
        "critical": sum(1 for o in opportunities if o.priority == "critical"),
        "high": sum(1 for o in opportunities if o.priority == "high"),
        "quick_wins": sum(1 for o in opportunities if o.quick_win),
    }


class BusinessIntelligenceService:
    """Cache-aside aggregator over Apollo, DataForSEO and Wappalyzer."""

    def __init__(
        self,
        cache: IntelligenceCache,
        opportunity_store: OpportunityStore,
        providers: ProviderClients,
        settings: Optional[Settings] = None,
        cache_config: Optional[CacheConfig] = None,
    ):
        """
        Initialize the service.

        Args:
            cache: Cache store bound to the request's session
            opportunity_store: Opportunity store bound to the same session
            providers: Provider clients (unconfigured ones are None)
            settings: Application settings (timeouts, SEO defaults)
            cache_config: Cache TTL and toggle
        """
        self.cache = cache
        self.opportunity_store = opportunity_store
        self.providers = providers
        self.settings = settings or get_settings()
        self.cache_config = cache_config or get_cache_config()

    async def analyze(
        self,
        domain: Optional[str],
        client_id: Optional[str] = None,
        skip_cache: bool = False,
    ) -> Dict[str, Any]:
        """
        Run the full analysis for a domain.

        Args:
            domain: Raw domain or URL supplied by the caller
            client_id: Client account to attach detected opportunities to
            skip_cache: Force a fresh fetch (the result is still cached)

        Returns:
            Merged provider data, metadata and opportunity summary

        Raises:
            InvalidRequestError: If no usable domain was supplied
        """
        normalized = normalize_domain(domain)
        if not normalized:
            raise InvalidRequestError("domain is required")

        logger.info(f"Business intelligence request for {normalized} (skip_cache={skip_cache})")

        # Step 1: Lookup
        if not skip_cache and self.cache_config.enabled:
            cached = self.cache.get(normalized)
            if cached is not None:
                logger.info(f"Cache hit for {normalized}")
                return self._cached_response(cached)

        start_time = time.monotonic()
        warnings: List[str] = []

        # Step 2: Fan-out
        company, seo, tech = await self._fan_out(normalized)

        # Step 3: Assemble
        slots = [company, seo, tech]
        sources_complete = [s.source for s in slots if s.has_data]
        sources_failed = [s.source for s in slots if not s.has_data]

        # Step 4: Score
        quality_score = calculate_data_quality_score(company.data, seo.data, tech.data)
        total_cost = round(sum(s.cost for s in slots), 6)

        total_duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Analysis complete for {normalized}: {total_duration_ms}ms, "
            f"cost=${total_cost:.4f}, quality={quality_score}, "
            + ", ".join(f"{s.source}={s.status.value}" for s in slots)
        )

        # Step 5: Persist
        entry = CacheEntry.create(
            domain=normalized,
            ttl=self.cache_config.ttl,
            company_data=company.data,
            seo_data=seo.data,
            tech_data=tech.data,
            data_quality_score=quality_score,
            total_api_cost=total_cost,
            sources_complete=sources_complete,
            sources_failed=sources_failed,
        )
        try:
            self.cache.put(entry)
        except CacheWriteError as e:
            logger.warning(f"Result for {normalized} not cached: {e}")
            warnings.append(f"Cache write failed: {e}")

        # Step 6: Detect
        opportunities_summary = None
        if client_id:
            opportunities_summary = self._detect_and_store(
                client_id, company.data, seo.data, tech.data, warnings
            )

        # Step 7: Respond
        return {
            "domain": normalized,
            "company_data": company.data,
            "seo_data": seo.data,
            "tech_data": tech.data,
            "metadata": {
                "total_duration_ms": total_duration_ms,
                "total_cost": total_cost,
                "success_count": len(sources_complete),
                "failure_count": len(sources_failed),
                "cache_hit": False,
                "data_quality_score": quality_score,
                "sources": {s.source: s.to_dict() for s in slots},
                "warnings": warnings,
            },
            "opportunities": opportunities_summary,
        }

    async def _fan_out(self, domain: str) -> List[SourceResult]:
        """Invoke every configured provider and join on all of them."""
        apollo = self.providers.apollo
        dataforseo = self.providers.dataforseo
        wappalyzer = self.providers.wappalyzer
        # Filled per SEO sub-call, so billed cost survives a timeout
        seo_billed: List[float] = []

        branches = [
            self._run_source(
                APOLLO,
                (lambda: apollo.get_company_data(domain)) if apollo else None,
            ),
            self._run_source(
                DATAFORSEO,
                (lambda: dataforseo.get_seo_data(
                    domain,
                    location_code=self.settings.DEFAULT_LOCATION_CODE,
                    competitors_limit=self.settings.COMPETITORS_LIMIT,
                    billed=seo_billed,
                )) if dataforseo else None,
                billed=seo_billed,
            ),
            self._run_source(
                WAPPALYZER,
                (lambda: wappalyzer.analyze_technology_stack(build_site_url(domain))) if wappalyzer else None,
            ),
        ]

        results = await asyncio.gather(*branches, return_exceptions=True)

        resolved = []
        for source, result in zip((APOLLO, DATAFORSEO, WAPPALYZER), results):
            if isinstance(result, BaseException):
                # _run_source catches provider errors, this is a safety net
                logger.error(f"[{source}] Unexpected fan-out error: {result}")
                result = SourceResult(source=source, status=SourceStatus.FAILED, error=str(result))
            resolved.append(result)
        return resolved

    async def _run_source(
        self,
        source: str,
        call: Optional[Callable[[], Awaitable[Optional[Dict[str, Any]]]]],
        billed: Optional[List[float]] = None,
    ) -> SourceResult:
        """
        Run one provider call under the per-provider timeout.

        ``billed`` collects costs the provider reports as it goes; on timeout
        it is the only record of what the cancelled call already spent.
        """
        if call is None:
            logger.debug(f"[{source}] Not configured, skipping")
            return SourceResult(source=source, status=SourceStatus.NOT_CONFIGURED)

        start = time.monotonic()
        try:
            data = await asyncio.wait_for(call(), timeout=self.settings.PROVIDER_TIMEOUT)
        except asyncio.TimeoutError:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.warning(f"[{source}] Timed out after {self.settings.PROVIDER_TIMEOUT}s")
            return SourceResult(
                source=source,
                status=SourceStatus.FAILED,
                error=f"Timed out after {self.settings.PROVIDER_TIMEOUT}s",
                duration_ms=duration_ms,
                cost=round(sum(billed or []), 6),
            )
        except Exception as e:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.warning(f"[{source}] Failed: {e}")
            # A failed SEO slot may already have been billed for some sub-calls
            cost = e.cost if isinstance(e, DataForSEOError) else 0.0
            return SourceResult(
                source=source,
                status=SourceStatus.FAILED,
                error=str(e),
                duration_ms=duration_ms,
                cost=cost,
            )

        duration_ms = int((time.monotonic() - start) * 1000)
        cost = float((data or {}).get("cost") or 0.0)
        if data is None:
            logger.info(f"[{source}] No data found")
            return SourceResult(
                source=source,
                status=SourceStatus.SUCCESS,
                error="No data found",
                duration_ms=duration_ms,
            )

        return SourceResult(
            source=source,
            status=SourceStatus.SUCCESS,
            data=data,
            duration_ms=duration_ms,
            cost=cost,
        )

    def _detect_and_store(
        self,
        client_id: str,
        company_data: Optional[Dict[str, Any]],
        seo_data: Optional[Dict[str, Any]],
        tech_data: Optional[Dict[str, Any]],
        warnings: List[str],
    ) -> Optional[Dict[str, int]]:
        """Detect opportunities and append them to the client's log."""
        opportunities = detect_opportunities(company_data, seo_data, tech_data)
        if not opportunities:
            logger.info(f"No opportunities detected for client {client_id}")
            return None

        try:
            self.opportunity_store.insert_many(client_id, opportunities)
        except OpportunityStoreError as e:
            logger.warning(f"Opportunities for client {client_id} not stored: {e}")
            warnings.append(f"Opportunity storage failed: {e}")
            return None

        return summarize_opportunities(opportunities)

    @staticmethod
    def _cached_response(entry: CacheEntry) -> Dict[str, Any]:
        return {
            "domain": entry.domain,
            "company_data": entry.company_data,
            "seo_data": entry.seo_data,
            "tech_data": entry.tech_data,
            "metadata": {
                "total_duration_ms": 0,
                "total_cost": entry.total_api_cost,
                "success_count": len(entry.sources_complete),
                "failure_count": len(entry.sources_failed),
                "cache_hit": True,
                "data_quality_score": entry.data_quality_score,
                "sources_complete": entry.sources_complete,
                "sources_failed": entry.sources_failed,
                "cached_at": entry.created_at.isoformat() if entry.created_at else None,
                "expires_at": entry.expires_at.isoformat() if entry.expires_at else None,
                "warnings": [],
            },
            "opportunities": None,
            "message": "Data retrieved from cache",
        }
