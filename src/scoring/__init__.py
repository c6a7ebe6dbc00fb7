"""
Scoring Module for the Business Intelligence Aggregator

1. **Data Quality Score** (0-100)
   Fixed weights per provider slot: 30 company + 40 SEO + 30 technology.

2. **Opportunity Detection**
   Declarative rule table evaluated in fixed order over merged provider data.

Example Usage:
    from src.scoring import calculate_data_quality_score, detect_opportunities

    score = calculate_data_quality_score(company, seo, tech)
    opportunities = detect_opportunities(company, seo, tech)
"""

from .quality import SOURCE_WEIGHTS, calculate_data_quality_score
from .opportunity import (
    Opportunity,
    OpportunityCategory,
    OpportunityRule,
    OPPORTUNITY_RULES,
    detect_opportunities,
)

__all__ = [
    # Quality
    "SOURCE_WEIGHTS",
    "calculate_data_quality_score",
    # Opportunities
    "Opportunity",
    "OpportunityCategory",
    "OpportunityRule",
    "OPPORTUNITY_RULES",
    "detect_opportunities",
]
