"""
Test helpers shared across modules: fake provider clients and
technology profiles with chosen insight flags.
"""

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock


def make_tech_data(
    marketing_automation: bool = False,
    crm: bool = False,
    analytics: bool = False,
    ecommerce: bool = False,
) -> Dict[str, Any]:
    """Technology profile with the given insight flags."""
    insights = {
        "has_marketing_automation": marketing_automation,
        "has_crm": crm,
        "has_analytics": analytics,
        "has_ecommerce": ecommerce,
    }
    missing = []
    if not marketing_automation:
        missing.append("Marketing Automation (HubSpot, Marketo, ActiveCampaign)")
    if not crm:
        missing.append("CRM System (Salesforce, HubSpot CRM, Pipedrive)")
    if not analytics:
        missing.append("Analytics Platform (Google Analytics, Mixpanel, Amplitude)")
    return {
        "technologies": [],
        "summary": {},
        "insights": insights,
        "missing_technologies": missing,
        "data_source": "wappalyzer",
    }


def make_providers(apollo=None, dataforseo=None, wappalyzer=None) -> MagicMock:
    """
    Stand-in for ProviderClients.

    Pass an AsyncMock-backed client for configured providers; None means
    not configured.
    """
    providers = MagicMock()
    providers.apollo = apollo
    providers.dataforseo = dataforseo
    providers.wappalyzer = wappalyzer
    providers.close = AsyncMock()
    return providers


def mock_apollo(result=None, error: Exception = None) -> MagicMock:
    client = MagicMock()
    client.get_company_data = AsyncMock(return_value=result, side_effect=error)
    return client


def mock_dataforseo(result=None, error: Exception = None) -> MagicMock:
    client = MagicMock()
    client.get_seo_data = AsyncMock(return_value=result, side_effect=error)
    return client


def mock_wappalyzer(result=None, error: Exception = None) -> MagicMock:
    client = MagicMock()
    client.analyze_technology_stack = AsyncMock(return_value=result, side_effect=error)
    return client
