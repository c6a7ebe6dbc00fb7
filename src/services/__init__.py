"""
Business Intelligence Services Layer

Business logic that orchestrates provider calls, caching, scoring
and opportunity storage.
"""

from .intelligence import (
    BusinessIntelligenceService,
    InvalidRequestError,
    SourceResult,
    SourceStatus,
    summarize_opportunities,
)

__all__ = [
    "BusinessIntelligenceService",
    "InvalidRequestError",
    "SourceResult",
    "SourceStatus",
    "summarize_opportunities",
]
