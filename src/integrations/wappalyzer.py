"""
Wappalyzer API Client

Technology detection for a website. The flat technology list is bucketed by
category slug, and the buckets drive insight flags and missing-capability
recommendations.

API: https://www.wappalyzer.com/docs/api/
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


# Summary bucket -> Wappalyzer category slug
CATEGORY_SLUGS = {
    "cms": "cms",
    "frameworks": "javascript-frameworks",
    "analytics": "analytics",
    "marketing_automation": "marketing-automation",
    "crm": "crm",
    "ecommerce": "ecommerce",
}

# Insight flag -> summary bucket it is derived from
INSIGHT_BUCKETS = {
    "has_marketing_automation": "marketing_automation",
    "has_crm": "crm",
    "has_analytics": "analytics",
    "has_ecommerce": "ecommerce",
}

# Recommendation emitted when the insight flag is false
MISSING_TECHNOLOGY_RECOMMENDATIONS = [
    ("has_marketing_automation", "Marketing Automation (HubSpot, Marketo, ActiveCampaign)"),
    ("has_crm", "CRM System (Salesforce, HubSpot CRM, Pipedrive)"),
    ("has_analytics", "Analytics Platform (Google Analytics, Mixpanel, Amplitude)"),
]


class WappalyzerError(Exception):
    """Custom exception for Wappalyzer API errors."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


def categorize_technologies(technologies: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Bucket technology names by the category slugs in CATEGORY_SLUGS."""
    summary = {}
    for bucket, slug in CATEGORY_SLUGS.items():
        summary[bucket] = [
            tech.get("name")
            for tech in technologies
            if any(category.get("slug") == slug for category in tech.get("categories") or [])
        ]
    return summary


def build_technology_profile(technologies: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Derive summary buckets, insight flags and recommendations.

    An empty technology list produces the zero-value profile: empty buckets,
    every flag false and every recommendation present.
    """
    summary = categorize_technologies(technologies)
    insights = {
        flag: len(summary[bucket]) > 0
        for flag, bucket in INSIGHT_BUCKETS.items()
    }
    missing = [
        recommendation
        for flag, recommendation in MISSING_TECHNOLOGY_RECOMMENDATIONS
        if not insights[flag]
    ]

    return {
        "technologies": technologies,
        "summary": summary,
        "insights": insights,
        "missing_technologies": missing,
        "data_source": "wappalyzer",
        "retrieved_at": datetime.utcnow().isoformat(),
    }


class WappalyzerClient:
    """
    Async client for the Wappalyzer lookup API.

    Usage:
        async with WappalyzerClient(api_key="your_api_key") as client:
            profile = await client.analyze_technology_stack("https://example.com")
            print(profile["insights"]["has_crm"])
    """

    BASE_URL = "https://api.wappalyzer.com/v2"

    def __init__(
        self,
        api_key: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Wappalyzer client.

        Args:
            api_key: Wappalyzer API key
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={"x-api-key": api_key},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    async def analyze_technology_stack(self, url: str) -> Dict[str, Any]:
        """
        Detect the technology stack behind a URL.

        Args:
            url: Fully-qualified URL (e.g. "https://example.com")

        Returns:
            Technology profile (see build_technology_profile)

        Raises:
            WappalyzerError: On any non-2xx response
        """
        if self._closed:
            raise WappalyzerError("Client has been closed")

        logger.info(f"Analyzing technology stack for {url}")

        response = await self._client.get("/lookup/", params={"urls": url})

        if not response.is_success:
            raise WappalyzerError(
                f"Wappalyzer API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        data = response.json()
        # The lookup endpoint answers with either a bare list or {"results": [...]}
        results = data.get("results") if isinstance(data, dict) else data

        if not results:
            logger.info(f"No technologies detected for {url}")
            return build_technology_profile([])

        return build_technology_profile(results[0].get("technologies") or [])

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
