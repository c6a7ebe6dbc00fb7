"""
Provider Configuration

Configuration and factory for the three data provider clients.
A provider without credentials is never constructed: its slot in the
fan-out is "not configured", which is distinct from "failed".

Environment variables:
- APOLLO_API_KEY: Apollo.io API key
- DATAFORSEO_LOGIN / DATAFORSEO_PASSWORD: DataForSEO basic-auth credentials
- WAPPALYZER_API_KEY: Wappalyzer API key

Optional:
- APOLLO_ENABLED, DATAFORSEO_ENABLED, WAPPALYZER_ENABLED (default: true)
"""

import os
import logging
from typing import Optional

import httpx

from src.utils.config import Settings, get_settings
from .apollo import ApolloClient
from .dataforseo import DataForSEOClient
from .wappalyzer import WappalyzerClient

logger = logging.getLogger(__name__)

APOLLO = "apollo"
DATAFORSEO = "dataforseo"
WAPPALYZER = "wappalyzer"

PROVIDER_NAMES = (APOLLO, DATAFORSEO, WAPPALYZER)


def get_env_bool(key: str, default: bool = True) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("false", "0", "no", "off"):
        return False
    if val in ("true", "1", "yes", "on"):
        return True
    return default


class ProviderConfig:
    """Credentials and transport settings for the provider clients."""

    def __init__(
        self,
        apollo_api_key: Optional[str] = None,
        dataforseo_login: Optional[str] = None,
        dataforseo_password: Optional[str] = None,
        wappalyzer_api_key: Optional[str] = None,
        language_code: str = "en",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize provider configuration.

        Args:
            apollo_api_key: Apollo.io API key
            dataforseo_login: DataForSEO login
            dataforseo_password: DataForSEO password
            wappalyzer_api_key: Wappalyzer API key
            language_code: Language code for DataForSEO Labs requests
            timeout: HTTP timeout in seconds for each client
            transport: Optional shared httpx transport (used by tests)
        """
        self.apollo_api_key = apollo_api_key
        self.dataforseo_login = dataforseo_login
        self.dataforseo_password = dataforseo_password
        self.wappalyzer_api_key = wappalyzer_api_key
        self.language_code = language_code
        self.timeout = timeout
        self.transport = transport

        self.apollo_enabled = get_env_bool("APOLLO_ENABLED", True)
        self.dataforseo_enabled = get_env_bool("DATAFORSEO_ENABLED", True)
        self.wappalyzer_enabled = get_env_bool("WAPPALYZER_ENABLED", True)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ProviderConfig":
        """Build configuration from application settings."""
        settings = settings or get_settings()
        return cls(
            apollo_api_key=settings.APOLLO_API_KEY,
            dataforseo_login=settings.DATAFORSEO_LOGIN,
            dataforseo_password=settings.DATAFORSEO_PASSWORD,
            wappalyzer_api_key=settings.WAPPALYZER_API_KEY,
            language_code=settings.DEFAULT_LANGUAGE_CODE,
            timeout=float(settings.API_TIMEOUT),
        )

    @property
    def has_apollo(self) -> bool:
        return self.apollo_enabled and bool(self.apollo_api_key)

    @property
    def has_dataforseo(self) -> bool:
        return self.dataforseo_enabled and bool(self.dataforseo_login and self.dataforseo_password)

    @property
    def has_wappalyzer(self) -> bool:
        return self.wappalyzer_enabled and bool(self.wappalyzer_api_key)

    def log_status(self):
        """Log configuration status."""
        logger.info(
            f"Provider status: "
            f"Apollo={'enabled' if self.has_apollo else 'disabled'}, "
            f"DataForSEO={'enabled' if self.has_dataforseo else 'disabled'}, "
            f"Wappalyzer={'enabled' if self.has_wappalyzer else 'disabled'}"
        )


class ProviderClients:
    """
    Factory and manager for provider clients.

    Usage:
        async with ProviderClients(ProviderConfig.from_settings()) as clients:
            if clients.apollo:
                company = await clients.apollo.get_company_data("example.com")
    """

    def __init__(self, config: Optional[ProviderConfig] = None):
        self.config = config or ProviderConfig.from_settings()
        self._apollo: Optional[ApolloClient] = None
        self._dataforseo: Optional[DataForSEOClient] = None
        self._wappalyzer: Optional[WappalyzerClient] = None

    @property
    def apollo(self) -> Optional[ApolloClient]:
        """Get or create Apollo client."""
        if not self.config.has_apollo:
            return None

        if self._apollo is None:
            self._apollo = ApolloClient(
                api_key=self.config.apollo_api_key,
                timeout=self.config.timeout,
                transport=self.config.transport,
            )
            logger.debug("Initialized Apollo client")

        return self._apollo

    @property
    def dataforseo(self) -> Optional[DataForSEOClient]:
        """Get or create DataForSEO client."""
        if not self.config.has_dataforseo:
            return None

        if self._dataforseo is None:
            self._dataforseo = DataForSEOClient(
                login=self.config.dataforseo_login,
                password=self.config.dataforseo_password,
                language_code=self.config.language_code,
                timeout=self.config.timeout,
                transport=self.config.transport,
            )
            logger.debug("Initialized DataForSEO client")

        return self._dataforseo

    @property
    def wappalyzer(self) -> Optional[WappalyzerClient]:
        """Get or create Wappalyzer client."""
        if not self.config.has_wappalyzer:
            return None

        if self._wappalyzer is None:
            self._wappalyzer = WappalyzerClient(
                api_key=self.config.wappalyzer_api_key,
                timeout=self.config.timeout,
                transport=self.config.transport,
            )
            logger.debug("Initialized Wappalyzer client")

        return self._wappalyzer

    async def close(self):
        """Close all clients."""
        for attr in ("_apollo", "_dataforseo", "_wappalyzer"):
            client = getattr(self, attr)
            if client:
                await client.close()
                setattr(self, attr, None)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
