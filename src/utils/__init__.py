"""Utility modules for the Business Intelligence Aggregator."""

from .config import Settings, get_settings
from .domain import normalize_domain, build_site_url

__all__ = [
    "Settings",
    "get_settings",
    "normalize_domain",
    "build_site_url",
]
