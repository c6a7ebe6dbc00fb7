"""
Data Quality Score

Fixed policy table, not a heuristic: each provider slot contributes its
weight when its data is present.

    Score = 30 × company + 40 × seo + 30 × tech
"""

from typing import Any, Dict, Optional

from src.integrations.config import APOLLO, DATAFORSEO, WAPPALYZER

SOURCE_WEIGHTS: Dict[str, int] = {
    APOLLO: 30,       # Firmographics
    DATAFORSEO: 40,   # SEO metrics (three billed sub-calls)
    WAPPALYZER: 30,   # Technology stack
}


def calculate_data_quality_score(
    company_data: Optional[Dict[str, Any]],
    seo_data: Optional[Dict[str, Any]],
    tech_data: Optional[Dict[str, Any]],
) -> int:
    """
    Calculate the 0-100 data quality score for a merged record.

    Examples:
        company + tech only -> 60
        all three           -> 100
        none                -> 0
    """
    present = {
        APOLLO: company_data is not None,
        DATAFORSEO: seo_data is not None,
        WAPPALYZER: tech_data is not None,
    }
    return sum(weight for source, weight in SOURCE_WEIGHTS.items() if present[source])
