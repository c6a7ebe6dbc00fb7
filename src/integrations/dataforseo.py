"""
DataForSEO API Client

Async HTTP client for the three SEO sub-calls the aggregator needs:
- Domain rank overview (organic keywords, traffic value, position buckets)
- Backlink summary (backlinks, referring domains, rank)
- Competitor domains

Every sub-call returns the cost DataForSEO billed for it. Costs are threaded
through return values instead of being accumulated on the client, so one
client can serve concurrent calls without hidden coupling.
get_seo_data can also report each sub-call's cost into a caller-owned list,
for callers that may cancel it.
"""

import asyncio
import base64
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 20000
TASK_SUCCESS_STATUSES = (20000, 20100)

# Position buckets reported by domain_rank_overview beyond the top 10
DEEP_POSITION_BUCKETS = (
    "pos_11_20", "pos_21_30", "pos_31_40", "pos_41_50",
    "pos_51_60", "pos_61_70", "pos_71_80", "pos_81_90", "pos_91_100",
)


def safe_get_result(response: Dict, get_items: bool = True) -> Any:
    """
    Safely extract result data from DataForSEO API response.

    Handles cases where result is None, empty, or malformed.

    Args:
        response: Raw API response dict
        get_items: If True, returns items list. If False, returns first result object.

    Returns:
        List of items, result dict, or empty list/dict on failure
    """
    try:
        tasks = response.get("tasks")
        if not tasks or not isinstance(tasks, list):
            return [] if get_items else {}

        result = tasks[0].get("result")
        if not result or not isinstance(result, list):
            return [] if get_items else {}

        first_result = result[0]
        if not first_result or not isinstance(first_result, dict):
            return [] if get_items else {}

        if get_items:
            items = first_result.get("items")
            return items if items and isinstance(items, list) else []
        return first_result
    except (TypeError, IndexError, KeyError, AttributeError) as e:
        logger.debug(f"Safe result extraction failed: {e}")
        return [] if get_items else {}


class DataForSEOError(Exception):
    """Custom exception for DataForSEO API errors.

    ``cost`` holds whatever was already billed before the failure, so the
    caller can still account for it.
    """

    def __init__(
        self,
        message: str,
        status_code: int = None,
        response: dict = None,
        cost: float = 0.0,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.cost = cost


def _safe_json(response: httpx.Response) -> Optional[Dict]:
    try:
        return response.json() if response.content else None
    except ValueError:
        return None


class DataForSEOClient:
    """
    Async client for DataForSEO API.

    Usage:
        async with DataForSEOClient(login="your_login", password="your_password") as client:
            seo = await client.get_seo_data("example.com")
            print(seo["organic_keywords"], seo["cost"])
    """

    BASE_URL = "https://api.dataforseo.com/v3"

    def __init__(
        self,
        login: str,
        password: str,
        language_code: str = "en",
        max_connections: int = 10,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize DataForSEO client.

        Args:
            login: DataForSEO login email
            password: DataForSEO API password
            language_code: Language code sent with Labs requests
            max_connections: Maximum concurrent connections
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.login = login
        self.language_code = language_code

        credentials = f"{login}:{password}"
        auth_token = base64.b64encode(credentials.encode()).decode()

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "Authorization": f"Basic {auth_token}",
                "Content-Type": "application/json",
            },
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    async def post(self, endpoint: str, data: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Make POST request to DataForSEO API.

        Args:
            endpoint: API endpoint path (e.g., "backlinks/summary/live")
            data: Request payload (list of task objects)

        Returns:
            API response as dictionary

        Raises:
            DataForSEOError: On HTTP error or a non-20000 API status
        """
        if self._closed:
            raise DataForSEOError("Client is closed")

        url = f"/{endpoint}"
        logger.debug(f"POST {url}")

        response = await self._client.post(url, json=data)

        if response.status_code != 200:
            raise DataForSEOError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                response=_safe_json(response),
            )

        result = response.json()

        # HTTP 200 can still carry an API-level error
        if result.get("status_code") != SUCCESS_STATUS:
            error_msg = result.get("status_message", "Unknown error")
            raise DataForSEOError(
                f"API error: {error_msg}",
                status_code=result.get("status_code"),
                response=result,
            )

        for task in result.get("tasks") or []:
            task_status = task.get("status_code")
            if task_status not in TASK_SUCCESS_STATUSES:
                logger.warning(
                    f"DataForSEO task error in {url}: "
                    f"{task.get('status_message', 'Task error')} (status: {task_status})"
                )

        return result

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ========================================================================
    # SUB-CALLS
    # ========================================================================

    async def get_domain_analytics(
        self,
        domain: str,
        location_code: int = 2840,
    ) -> Dict[str, Any]:
        """
        Get ranking and traffic overview for a domain.

        Uses DataForSEO Labs Domain Rank Overview API.

        Returns:
            Dict with organic_keywords, estimated_traffic_value, position
            buckets and the billed cost
        """
        logger.info(f"Fetching domain analytics for {domain}")

        response = await self.post(
            "dataforseo_labs/google/domain_rank_overview/live",
            [{
                "target": domain,
                "location_code": location_code,
                "language_code": self.language_code,
            }],
        )
        cost = float(response.get("cost") or 0)

        result_obj = safe_get_result(response, get_items=False)
        if not result_obj:
            raise DataForSEOError(
                f"No domain overview result for {domain}: {response.get('status_message')}",
                response=response,
                cost=cost,
            )

        # Metrics live under items[0] on current API versions, directly on
        # the result object on older ones
        items = result_obj.get("items") or []
        metrics_holder = items[0] if items else result_obj
        organic = (metrics_holder.get("metrics") or {}).get("organic") or {}

        return {
            "organic_keywords": int(organic.get("count", 0) or 0),
            "estimated_traffic_value": float(organic.get("etv", 0) or 0),
            "top3_keywords": int(organic.get("pos_1", 0) or 0) + int(organic.get("pos_2_3", 0) or 0),
            "top10_keywords": int(organic.get("pos_4_10", 0) or 0),
            "top100_keywords": sum(int(organic.get(bucket, 0) or 0) for bucket in DEEP_POSITION_BUCKETS),
            "cost": cost,
            "retrieved_at": datetime.utcnow().isoformat(),
        }

    async def get_backlinks(self, domain: str) -> Dict[str, Any]:
        """
        Get backlink summary for a domain.

        Uses DataForSEO Backlinks Summary API with rank_scale="one_hundred"
        so the domain rank is on a 0-100 scale.

        Returns:
            Dict with total_backlinks, referring_domains, domain_rank and the billed cost
        """
        logger.info(f"Fetching backlinks for {domain}")

        response = await self.post(
            "backlinks/summary/live",
            [{
                "target": domain,
                "internal_list_limit": 0,
                "include_subdomains": True,
                "backlinks_status_type": "all",
                "rank_scale": "one_hundred",
            }],
        )
        item = safe_get_result(response, get_items=False)

        return {
            "total_backlinks": int(item.get("backlinks", 0) or 0),
            "referring_domains": int(item.get("referring_domains", 0) or 0),
            "referring_main_domains": int(item.get("referring_main_domains", 0) or 0),
            "domain_rank": int(item.get("rank", 0) or 0),
            "cost": float(response.get("cost") or 0),
            "retrieved_at": datetime.utcnow().isoformat(),
        }

    async def get_competitors(
        self,
        domain: str,
        location_code: int = 2840,
        limit: int = 10,
    ) -> Dict[str, Any]:
        """
        Get competitor domains for a target domain.

        Returns:
            Dict with a competitors list and the billed cost
        """
        logger.info(f"Fetching competitors for {domain}")

        response = await self.post(
            "dataforseo_labs/google/competitors_domain/live",
            [{
                "target": domain,
                "location_code": location_code,
                "language_code": self.language_code,
                "limit": limit,
            }],
        )
        items = safe_get_result(response, get_items=True)

        return {
            "competitors": [
                {
                    "domain": item.get("domain", ""),
                    "avg_position": item.get("avg_position"),
                    "sum_position": item.get("sum_position"),
                    "intersections": item.get("intersections", 0),
                }
                for item in items
                if item
            ],
            "cost": float(response.get("cost") or 0),
            "retrieved_at": datetime.utcnow().isoformat(),
        }

    # ========================================================================
    # MERGED RECORD
    # ========================================================================

    async def get_seo_data(
        self,
        domain: str,
        location_code: int = 2840,
        competitors_limit: int = 10,
        billed: Optional[List[float]] = None,
    ) -> Dict[str, Any]:
        """
        Run the three SEO sub-calls concurrently and merge them.

        All three must finish before the record resolves. If any of them
        fails, the whole SEO record fails; the raised error carries the cost
        the successful sub-calls already billed.

        Args:
            domain: Target domain
            location_code: DataForSEO location (2840 = United States)
            competitors_limit: Maximum competitor domains to return
            billed: Optional list that receives each sub-call's cost as soon
                as it completes, so the cost survives if this call is cancelled

        Returns:
            Merged SEO record; ``cost`` is the sum of all three sub-calls
        """
        async def record_cost(call):
            try:
                result = await call
            except DataForSEOError as e:
                if billed is not None:
                    billed.append(e.cost)
                raise
            if billed is not None:
                billed.append(result.get("cost", 0.0))
            return result

        results = await asyncio.gather(
            record_cost(self.get_domain_analytics(domain, location_code)),
            record_cost(self.get_backlinks(domain)),
            record_cost(self.get_competitors(domain, location_code, competitors_limit)),
            return_exceptions=True,
        )

        total_cost = 0.0
        errors = []
        merged: Dict[str, Any] = {}

        for name, result in zip(("analytics", "backlinks", "competitors"), results):
            if isinstance(result, BaseException):
                total_cost += getattr(result, "cost", 0.0) or 0.0
                errors.append(f"{name}: {result}")
                continue
            total_cost += result.pop("cost", 0.0)
            merged[f"{name}_retrieved_at"] = result.pop("retrieved_at", None)
            merged.update(result)

        total_cost = round(total_cost, 6)

        if errors:
            raise DataForSEOError(
                f"SEO collection failed for {domain}: {'; '.join(errors)}",
                cost=total_cost,
            )

        merged.update({
            "cost": total_cost,
            "data_source": "dataforseo",
            "retrieved_at": datetime.utcnow().isoformat(),
        })

        logger.info(
            f"SEO data for {domain}: keywords={merged['organic_keywords']}, "
            f"backlinks={merged['total_backlinks']}, cost=${total_cost:.4f}"
        )
        return merged
