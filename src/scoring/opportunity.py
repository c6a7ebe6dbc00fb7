"""
Opportunity Detection

Rule-based detection of service opportunities from merged provider data.

Rules live in a declarative table (condition -> template). Evaluation order
is fixed and rules are independent, so a domain can trigger any subset.
Templates are policy constants; only the metric placeholders are filled in.

Rules:
1. Low organic keyword rankings  (seo, impact 9)
2. Weak backlink profile         (seo, impact 8)
3. No marketing automation       (marketing_automation, impact 10, quick win)
4. No CRM                        (customer_service_ai, impact 9, quick win)
5. Content gap                   (content, impact 8)
"""

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class OpportunityCategory(Enum):
    """Service categories an opportunity can belong to."""
    SEO = "seo"
    CONTENT = "content"
    SOCIAL = "social"
    WEBSITE = "website"
    PAID_ADVERTISING = "paid_advertising"
    MARKETING_AUTOMATION = "marketing_automation"
    CUSTOMER_SERVICE_AI = "customer_service_ai"
    CONTENT_GENERATION_AI = "content_generation_ai"
    PROCESS_AUTOMATION = "process_automation"
    ANALYTICS_AI = "analytics_ai"
    TRAINING = "training"


# Thresholds
LOW_KEYWORDS_THRESHOLD = 100
WEAK_BACKLINKS_THRESHOLD = 100
CONTENT_GAP_KEYWORDS_CEILING = 500


@dataclass(frozen=True)
class Opportunity:
    """A detected gap or weakness."""
    category: str
    title: str
    description: str
    evidence: str
    impact_score: int
    evidence_strength: int
    service_alignment: int
    quick_win: bool
    current_state_metric: str
    potential_improvement_metric: str
    expected_outcome: str
    roi_potential: str
    timeline_estimate: str
    budget_range: str

    @property
    def implementation_complexity(self) -> str:
        return "low" if self.quick_win else "medium"

    @property
    def priority(self) -> str:
        if self.impact_score >= 10:
            return "critical"
        if self.impact_score >= 8:
            return "high"
        if self.impact_score >= 5:
            return "medium"
        return "low"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["implementation_complexity"] = self.implementation_complexity
        data["priority"] = self.priority
        return data


@dataclass
class DetectionContext:
    """Provider data plus the metrics the templates reference."""
    company_data: Optional[Dict[str, Any]]
    seo_data: Optional[Dict[str, Any]]
    tech_data: Optional[Dict[str, Any]]
    metrics: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        company_data: Optional[Dict[str, Any]],
        seo_data: Optional[Dict[str, Any]],
        tech_data: Optional[Dict[str, Any]],
    ) -> "DetectionContext":
        seo = seo_data or {}
        tech = tech_data or {}
        metrics = {
            "organic_keywords": seo.get("organic_keywords") or 0,
            "total_backlinks": seo.get("total_backlinks") or 0,
            "referring_domains": seo.get("referring_domains") or 0,
            "traffic_value": seo.get("estimated_traffic_value") or 0,
            "competitor_count": len(seo.get("competitors") or []),
            "missing_technologies": ", ".join(tech.get("missing_technologies") or []) or "none",
        }
        return cls(company_data, seo_data, tech_data, metrics)

    def insight(self, flag: str) -> bool:
        return bool(((self.tech_data or {}).get("insights") or {}).get(flag))


@dataclass(frozen=True)
class OpportunityRule:
    """A condition and the fixed template it emits."""
    name: str
    condition: Callable[[DetectionContext], bool]
    template: Dict[str, Any]

    def render(self, context: DetectionContext) -> Opportunity:
        fields = {
            key: value.format(**context.metrics) if isinstance(value, str) else value
            for key, value in self.template.items()
        }
        return Opportunity(**fields)


OPPORTUNITY_RULES: List[OpportunityRule] = [
    OpportunityRule(
        name="low_organic_keywords",
        condition=lambda ctx: (
            ctx.seo_data is not None
            and ctx.metrics["organic_keywords"] < LOW_KEYWORDS_THRESHOLD
        ),
        template={
            "category": OpportunityCategory.SEO.value,
            "title": "Low organic keyword rankings",
            "description": (
                "Currently ranking for only {organic_keywords} organic keywords. "
                "Industry leaders typically rank for 1,000+."
            ),
            "evidence": "DataForSEO: {organic_keywords} keywords, Traffic Value: ${traffic_value:,.2f}",
            "impact_score": 9,
            "evidence_strength": 10,
            "service_alignment": 10,
            "quick_win": False,
            "current_state_metric": "{organic_keywords} organic keywords",
            "potential_improvement_metric": "500-1,000 keywords in 6 months",
            "expected_outcome": "Significantly increased organic search visibility and traffic",
            "roi_potential": "300-500% increase in organic leads",
            "timeline_estimate": "3-6 months",
            "budget_range": "$5,000 - $15,000",
        },
    ),
    OpportunityRule(
        name="weak_backlink_profile",
        condition=lambda ctx: (
            ctx.seo_data is not None
            and ctx.metrics["total_backlinks"] < WEAK_BACKLINKS_THRESHOLD
        ),
        template={
            "category": OpportunityCategory.SEO.value,
            "title": "Weak backlink profile",
            "description": (
                "Only {total_backlinks} backlinks detected. "
                "Strong domain authority requires 500+ quality backlinks."
            ),
            "evidence": "DataForSEO: {total_backlinks} backlinks, {referring_domains} referring domains",
            "impact_score": 8,
            "evidence_strength": 9,
            "service_alignment": 9,
            "quick_win": False,
            "current_state_metric": "{total_backlinks} backlinks",
            "potential_improvement_metric": "200-500 quality backlinks",
            "expected_outcome": "Improved domain authority and search rankings",
            "roi_potential": "200% increase in organic traffic",
            "timeline_estimate": "4-8 months",
            "budget_range": "$3,000 - $10,000",
        },
    ),
    OpportunityRule(
        name="no_marketing_automation",
        condition=lambda ctx: (
            ctx.tech_data is not None
            and not ctx.insight("has_marketing_automation")
        ),
        template={
            "category": OpportunityCategory.MARKETING_AUTOMATION.value,
            "title": "No marketing automation detected",
            "description": (
                "Missing marketing automation platform. Competitors using HubSpot, "
                "Marketo, or ActiveCampaign have 3x higher lead conversion rates."
            ),
            "evidence": "Wappalyzer: No marketing automation detected. Missing: {missing_technologies}",
            "impact_score": 10,
            "evidence_strength": 10,
            "service_alignment": 10,
            "quick_win": True,
            "current_state_metric": "No marketing automation",
            "potential_improvement_metric": "Full marketing automation suite",
            "expected_outcome": "Automated lead nurturing, scoring, and conversion",
            "roi_potential": "250% increase in lead-to-customer conversion",
            "timeline_estimate": "1-2 months",
            "budget_range": "$2,000 - $5,000",
        },
    ),
    OpportunityRule(
        name="no_crm",
        condition=lambda ctx: (
            ctx.tech_data is not None
            and not ctx.insight("has_crm")
        ),
        template={
            "category": OpportunityCategory.CUSTOMER_SERVICE_AI.value,
            "title": "No CRM system detected",
            "description": (
                "Missing CRM platform for customer relationship management. Essential "
                "for sales pipeline visibility and customer data organization."
            ),
            "evidence": "Wappalyzer: No CRM system detected",
            "impact_score": 9,
            "evidence_strength": 10,
            "service_alignment": 8,
            "quick_win": True,
            "current_state_metric": "No CRM system",
            "potential_improvement_metric": "Integrated CRM with sales automation",
            "expected_outcome": "Centralized customer data and improved sales efficiency",
            "roi_potential": "150% increase in sales team productivity",
            "timeline_estimate": "1-2 months",
            "budget_range": "$1,500 - $4,000",
        },
    ),
    OpportunityRule(
        name="content_gap",
        condition=lambda ctx: (
            ctx.company_data is not None
            and ctx.seo_data is not None
            and 0 < ctx.metrics["organic_keywords"] < CONTENT_GAP_KEYWORDS_CEILING
        ),
        template={
            "category": OpportunityCategory.CONTENT.value,
            "title": "Content gap analysis shows missing topics",
            "description": (
                "Competitors are ranking for hundreds of keywords you're not targeting. "
                "Strategic content creation can capture this traffic."
            ),
            "evidence": "DataForSEO: {competitor_count} competitors found with significantly more keyword coverage",
            "impact_score": 8,
            "evidence_strength": 8,
            "service_alignment": 10,
            "quick_win": False,
            "current_state_metric": "{organic_keywords} keywords covered",
            "potential_improvement_metric": "300-500 new keyword rankings",
            "expected_outcome": "Comprehensive content strategy targeting high-value keywords",
            "roi_potential": "200% increase in organic traffic",
            "timeline_estimate": "3-6 months",
            "budget_range": "$4,000 - $12,000",
        },
    ),
]


def detect_opportunities(
    company_data: Optional[Dict[str, Any]],
    seo_data: Optional[Dict[str, Any]],
    tech_data: Optional[Dict[str, Any]],
    rules: Optional[List[OpportunityRule]] = None,
) -> List[Opportunity]:
    """
    Evaluate the rule table against merged provider data.

    Pure: no I/O, no side effects.

    Args:
        company_data: Apollo record or None
        seo_data: DataForSEO record or None
        tech_data: Wappalyzer record or None
        rules: Override rule table (defaults to OPPORTUNITY_RULES)

    Returns:
        Opportunities in rule order
    """
    context = DetectionContext.build(company_data, seo_data, tech_data)
    opportunities = [
        rule.render(context)
        for rule in (rules if rules is not None else OPPORTUNITY_RULES)
        if rule.condition(context)
    ]

    logger.debug(f"Detected {len(opportunities)} opportunities")
    return opportunities
