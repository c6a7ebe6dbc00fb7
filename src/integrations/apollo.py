"""
Apollo.io API Client

Firmographic enrichment: company name, industry, size, location and social
profiles for a domain.

API: https://docs.apollo.io
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class ApolloError(Exception):
    """Custom exception for Apollo.io API errors."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ApolloClient:
    """
    Async client for the Apollo.io organization search API.

    Usage:
        client = ApolloClient(api_key="your_api_key")

        company = await client.get_company_data("example.com")
        # company is None when Apollo has no organization for the domain

        await client.close()
    """

    BASE_URL = "https://api.apollo.io/v1"

    def __init__(
        self,
        api_key: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Apollo client.

        Args:
            api_key: Apollo.io API key
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "x-api-key": api_key,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    async def get_company_data(self, domain: str) -> Optional[Dict[str, Any]]:
        """
        Look up the organization behind a domain.

        Args:
            domain: Bare domain (e.g. "example.com")

        Returns:
            Normalized company record, or None if Apollo has no match

        Raises:
            ApolloError: On any non-2xx response
        """
        if self._closed:
            raise ApolloError("Client has been closed")

        logger.info(f"Fetching company data for {domain}")

        response = await self._client.get(
            "/organizations/search",
            params={"organization_domains[]": domain},
        )

        if not response.is_success:
            raise ApolloError(
                f"Apollo API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        data = response.json()
        organizations = data.get("organizations") or []

        if not organizations:
            logger.info(f"No Apollo organization found for {domain}")
            return None

        return self._normalize_company(organizations[0])

    @staticmethod
    def _normalize_company(company: Dict[str, Any]) -> Dict[str, Any]:
        sub_industries = company.get("sub_industries") or []
        return {
            "name": company.get("name"),
            "domain": company.get("primary_domain") or company.get("domain"),
            "website": company.get("website_url"),
            "industry": company.get("industry"),
            "sub_industry": sub_industries[0] if sub_industries else None,
            "employee_count": company.get("estimated_num_employees"),
            "revenue": company.get("annual_revenue"),
            "founded_year": company.get("founded_year"),
            "description": company.get("short_description") or company.get("description"),
            "phone": company.get("phone"),
            "city": company.get("city"),
            "state": company.get("state"),
            "country": company.get("country"),
            "linkedin_url": company.get("linkedin_url"),
            "facebook_url": company.get("facebook_url"),
            "twitter_url": company.get("twitter_url"),
            "technologies": company.get("technologies") or [],
            "data_source": "apollo",
            "retrieved_at": datetime.utcnow().isoformat(),
        }

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
