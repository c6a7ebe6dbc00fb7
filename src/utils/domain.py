"""
Domain Utilities

Normalization shared by the cache key, the provider clients and the API:
every path that touches a domain must agree on one spelling of it.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


def normalize_domain(domain: Optional[str]) -> str:
    """
    Normalize a user-supplied domain to its cache-key form.

    Strips scheme, "www." prefix, path, port and trailing dots and lowercases
    the result, so "https://www.Example.com/about" becomes "example.com".

    Args:
        domain: Raw domain or URL

    Returns:
        Normalized domain, or an empty string if nothing usable remains
    """
    if not domain:
        return ""

    value = domain.strip().lower()

    for scheme in ("https://", "http://"):
        if value.startswith(scheme):
            value = value[len(scheme):]
            break

    # Drop path, query and fragment
    for separator in ("/", "?", "#"):
        value = value.split(separator, 1)[0]

    # Drop credentials and port
    value = value.rsplit("@", 1)[-1]
    value = value.split(":", 1)[0]

    if value.startswith("www."):
        value = value[4:]

    return value.strip(".")


def build_site_url(domain: str, scheme: str = "https") -> str:
    """Build the fully-qualified URL the technology lookup expects."""
    return f"{scheme}://{domain}"
