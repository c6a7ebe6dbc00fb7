"""
External API Integrations

Clients for the three business intelligence providers:
- Apollo: Company firmographics
- DataForSEO: SEO metrics (rank overview, backlinks, competitors)
- Wappalyzer: Technology stack detection
- Config: Unified configuration and client management
"""

from .apollo import ApolloClient, ApolloError
from .dataforseo import DataForSEOClient, DataForSEOError
from .wappalyzer import WappalyzerClient, WappalyzerError, build_technology_profile
from .config import (
    APOLLO,
    DATAFORSEO,
    WAPPALYZER,
    PROVIDER_NAMES,
    ProviderConfig,
    ProviderClients,
)

__all__ = [
    # Apollo
    "ApolloClient",
    "ApolloError",
    # DataForSEO
    "DataForSEOClient",
    "DataForSEOError",
    # Wappalyzer
    "WappalyzerClient",
    "WappalyzerError",
    "build_technology_profile",
    # Config
    "APOLLO",
    "DATAFORSEO",
    "WAPPALYZER",
    "PROVIDER_NAMES",
    "ProviderConfig",
    "ProviderClients",
]
