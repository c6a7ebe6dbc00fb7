"""
Tests for the opportunity store.

Opportunities are an append-only log keyed to a client: re-running an
analysis adds rows, it never replaces them.
"""

import pytest
from unittest.mock import MagicMock

from src.database import (
    DEFAULT_SERVICE,
    DetectedOpportunity,
    OpportunityStore,
    OpportunityStoreError,
    get_service_for_category,
)
from src.scoring import detect_opportunities


@pytest.fixture
def opportunities(mock_company_data, weak_seo_data, bare_tech_data):
    return detect_opportunities(mock_company_data, weak_seo_data, bare_tech_data)


class TestServiceMapping:
    """Test category to service lookup."""

    def test_known_categories(self):
        assert get_service_for_category("seo") == "SEO & Content Strategy"
        assert get_service_for_category("customer_service_ai") == "AI-Powered Customer Service Solutions"
        assert get_service_for_category("training") == "AI Training & Implementation"

    def test_unknown_category_falls_back(self):
        assert get_service_for_category("underwater_basket_weaving") == DEFAULT_SERVICE
        assert DEFAULT_SERVICE == "Custom Business Solutions"


class TestOpportunityStore:
    """Test bulk inserts."""

    def test_insert_many(self, db_session, opportunities):
        rows = OpportunityStore(db_session).insert_many("client-1", opportunities)

        assert len(rows) == 5
        assert db_session.query(DetectedOpportunity).count() == 5

        stored = {row.title: row for row in rows}
        martech = stored["No marketing automation detected"]
        assert martech.client_id == "client-1"
        assert martech.our_service == "Marketing Automation Setup & Management"
        assert martech.implementation_complexity == "low"
        assert martech.priority == "critical"
        assert martech.quick_win is True

        content = stored["Content gap analysis shows missing topics"]
        assert content.our_service == "Content Marketing & SEO"
        assert content.implementation_complexity == "medium"

    def test_empty_list_writes_nothing(self, db_session):
        assert OpportunityStore(db_session).insert_many("client-1", []) == []
        assert db_session.query(DetectedOpportunity).count() == 0

    def test_append_only(self, db_session, opportunities):
        store = OpportunityStore(db_session)
        store.insert_many("client-1", opportunities)
        store.insert_many("client-1", opportunities)

        assert len(store.list_for_client("client-1")) == 10

    def test_rows_keyed_by_client(self, db_session, opportunities):
        store = OpportunityStore(db_session)
        store.insert_many("client-1", opportunities[:2])
        store.insert_many("client-2", opportunities[2:])

        assert len(store.list_for_client("client-1")) == 2
        assert len(store.list_for_client("client-2")) == 3

    def test_to_dict(self, db_session, opportunities):
        row = OpportunityStore(db_session).insert_many("client-1", opportunities[:1])[0]
        data = row.to_dict()

        assert data["client_id"] == "client-1"
        assert data["category"] == "seo"
        assert data["id"] is not None
        assert data["created_at"] is not None

    def test_failure_rolls_back_and_raises(self, opportunities):
        db = MagicMock()
        db.commit.side_effect = RuntimeError("database is down")

        with pytest.raises(OpportunityStoreError) as exc_info:
            OpportunityStore(db).insert_many("client-1", opportunities)

        db.rollback.assert_called_once()
        assert exc_info.value.client_id == "client-1"
