"""
Test Suite for the Scoring Engine

Tests the two scoring components:
- Data Quality Score (fixed 30/40/30 weights)
- Opportunity Detection (declarative rule table)
"""

import pytest
from src.scoring import (
    SOURCE_WEIGHTS,
    calculate_data_quality_score,
    detect_opportunities,
    Opportunity,
    OpportunityRule,
    OPPORTUNITY_RULES,
)

from helpers import make_tech_data


class TestDataQualityScore:
    """Test Data Quality Score calculation."""

    def test_weights_sum_to_100(self):
        assert sum(SOURCE_WEIGHTS.values()) == 100

    def test_all_sources_present(self):
        assert calculate_data_quality_score({"name": "x"}, {"organic_keywords": 1}, {"insights": {}}) == 100

    def test_no_sources_present(self):
        assert calculate_data_quality_score(None, None, None) == 0

    def test_company_and_tech_only(self):
        """Company + tech without SEO = 30 + 30."""
        assert calculate_data_quality_score({"name": "x"}, None, {"insights": {}}) == 60

    def test_seo_only(self):
        assert calculate_data_quality_score(None, {"organic_keywords": 0}, None) == 40

    def test_empty_dict_counts_as_present(self):
        """Presence, not richness, is what gets scored."""
        assert calculate_data_quality_score({}, None, None) == 30


class TestOpportunityDetection:
    """Test rule evaluation over merged provider data."""

    def test_weak_domain_without_company_data(self):
        """Low keywords + weak backlinks + no martech/CRM = exactly four, in rule order."""
        result = detect_opportunities(
            None,
            {"organic_keywords": 50, "total_backlinks": 20},
            make_tech_data(marketing_automation=False, crm=False),
        )

        assert [o.title for o in result] == [
            "Low organic keyword rankings",
            "Weak backlink profile",
            "No marketing automation detected",
            "No CRM system detected",
        ]
        assert [o.category for o in result] == [
            "seo", "seo", "marketing_automation", "customer_service_ai",
        ]

    def test_strong_domain_yields_nothing(self, full_tech_data):
        result = detect_opportunities(
            None,
            {"organic_keywords": 1500, "total_backlinks": 800},
            full_tech_data,
        )
        assert result == []

    def test_strong_domain_with_company_data_yields_nothing(
        self, mock_company_data, strong_seo_data, full_tech_data
    ):
        assert detect_opportunities(mock_company_data, strong_seo_data, full_tech_data) == []

    def test_all_five_rules_fire(self, mock_company_data, weak_seo_data, bare_tech_data):
        result = detect_opportunities(mock_company_data, weak_seo_data, bare_tech_data)

        assert len(result) == 5
        assert result[-1].category == "content"
        assert all(isinstance(o, Opportunity) for o in result)

    def test_no_data_yields_nothing(self):
        assert detect_opportunities(None, None, None) == []

    def test_missing_backlinks_treated_as_zero(self):
        result = detect_opportunities(None, {"organic_keywords": 5000}, None)

        assert len(result) == 1
        assert result[0].title == "Weak backlink profile"
        assert result[0].current_state_metric == "0 backlinks"

    def test_content_gap_requires_company_data(self, weak_seo_data):
        result = detect_opportunities(None, weak_seo_data, None)
        assert "content" not in [o.category for o in result]

    def test_content_gap_excludes_zero_keywords(self, mock_company_data):
        result = detect_opportunities(
            mock_company_data, {"organic_keywords": 0, "total_backlinks": 500}, None
        )
        assert [o.title for o in result] == ["Low organic keyword rankings"]

    def test_content_gap_upper_bound(self, mock_company_data):
        below = detect_opportunities(
            mock_company_data, {"organic_keywords": 499, "total_backlinks": 500}, None
        )
        at = detect_opportunities(
            mock_company_data, {"organic_keywords": 500, "total_backlinks": 500}, None
        )
        assert [o.category for o in below] == ["content"]
        assert at == []

    def test_keyword_threshold_is_strict(self):
        result = detect_opportunities(None, {"organic_keywords": 100, "total_backlinks": 100}, None)
        assert result == []

    def test_tech_rules_independent(self):
        only_crm_missing = detect_opportunities(None, None, make_tech_data(marketing_automation=True))
        assert [o.title for o in only_crm_missing] == ["No CRM system detected"]

    def test_missing_insights_treated_as_absent(self):
        """A tech record without insights means nothing was detected."""
        result = detect_opportunities(None, None, {"technologies": []})
        assert len(result) == 2

    def test_templates_fill_metrics(self, mock_company_data, weak_seo_data, bare_tech_data):
        result = detect_opportunities(mock_company_data, weak_seo_data, bare_tech_data)
        by_title = {o.title: o for o in result}

        keywords = by_title["Low organic keyword rankings"]
        assert "only 50 organic keywords" in keywords.description
        assert keywords.evidence == "DataForSEO: 50 keywords, Traffic Value: $120.50"
        assert keywords.current_state_metric == "50 organic keywords"

        backlinks = by_title["Weak backlink profile"]
        assert backlinks.evidence == "DataForSEO: 20 backlinks, 7 referring domains"

        martech = by_title["No marketing automation detected"]
        assert "Marketing Automation (HubSpot, Marketo, ActiveCampaign)" in martech.evidence

        content = by_title["Content gap analysis shows missing topics"]
        assert content.evidence.startswith("DataForSEO: 2 competitors found")
        assert content.current_state_metric == "50 keywords covered"

    def test_detection_is_deterministic(self, mock_company_data, weak_seo_data, bare_tech_data):
        first = detect_opportunities(mock_company_data, weak_seo_data, bare_tech_data)
        second = detect_opportunities(mock_company_data, weak_seo_data, bare_tech_data)
        assert first == second

    def test_custom_rule_table(self):
        rule = OpportunityRule(
            name="always",
            condition=lambda ctx: True,
            template=dict(OPPORTUNITY_RULES[3].template, title="Custom"),
        )
        result = detect_opportunities(None, None, None, rules=[rule])
        assert [o.title for o in result] == ["Custom"]


class TestOpportunityFields:
    """Test derived opportunity fields."""

    @pytest.fixture
    def opportunities(self, mock_company_data, weak_seo_data, bare_tech_data):
        return {
            o.title: o
            for o in detect_opportunities(mock_company_data, weak_seo_data, bare_tech_data)
        }

    def test_complexity_follows_quick_win(self, opportunities):
        for opp in opportunities.values():
            expected = "low" if opp.quick_win else "medium"
            assert opp.implementation_complexity == expected

    def test_quick_wins(self, opportunities):
        quick = sorted(o.title for o in opportunities.values() if o.quick_win)
        assert quick == ["No CRM system detected", "No marketing automation detected"]

    def test_scores(self, opportunities):
        scores = {
            title: (o.impact_score, o.evidence_strength, o.service_alignment)
            for title, o in opportunities.items()
        }
        assert scores == {
            "Low organic keyword rankings": (9, 10, 10),
            "Weak backlink profile": (8, 9, 9),
            "No marketing automation detected": (10, 10, 10),
            "No CRM system detected": (9, 10, 8),
            "Content gap analysis shows missing topics": (8, 8, 10),
        }

    def test_priority_from_impact(self, opportunities):
        assert opportunities["No marketing automation detected"].priority == "critical"
        assert opportunities["No CRM system detected"].priority == "high"
        assert opportunities["Weak backlink profile"].priority == "high"

    def test_timeline_and_budget(self, opportunities):
        martech = opportunities["No marketing automation detected"]
        assert martech.timeline_estimate == "1-2 months"
        assert martech.budget_range == "$2,000 - $5,000"
        assert martech.roi_potential == "250% increase in lead-to-customer conversion"

    def test_to_dict_includes_derived_fields(self, opportunities):
        data = opportunities["No CRM system detected"].to_dict()
        assert data["implementation_complexity"] == "low"
        assert data["priority"] == "high"
        assert data["quick_win"] is True
        assert data["category"] == "customer_service_ai"
