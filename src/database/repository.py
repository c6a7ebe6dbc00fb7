"""
Repository Layer - Clean Interface for Opportunity Storage

Detected opportunities are a historical log, not a current-state table:
every analysis for a client appends new rows, nothing is deduplicated.
"""

import logging
from typing import Dict, List, Sequence

from sqlalchemy.orm import Session

from .models import DetectedOpportunity

logger = logging.getLogger(__name__)


# =============================================================================
# SERVICE MAPPING
# =============================================================================

SERVICE_BY_CATEGORY: Dict[str, str] = {
    "seo": "SEO & Content Strategy",
    "content": "Content Marketing & SEO",
    "social": "Social Media Management",
    "website": "Website Development & Optimization",
    "paid_advertising": "Paid Advertising Management",
    "marketing_automation": "Marketing Automation Setup & Management",
    "customer_service_ai": "AI-Powered Customer Service Solutions",
    "content_generation_ai": "AI Content Generation Services",
    "process_automation": "Business Process Automation",
    "analytics_ai": "AI Analytics & Insights",
    "training": "AI Training & Implementation",
}

DEFAULT_SERVICE = "Custom Business Solutions"


def get_service_for_category(category: str) -> str:
    """Map opportunity category to the service we sell for it"""
    return SERVICE_BY_CATEGORY.get(category, DEFAULT_SERVICE)


# =============================================================================
# OPPORTUNITY STORE
# =============================================================================

class OpportunityStoreError(Exception):
    """Raised when opportunities cannot be persisted."""

    def __init__(self, message: str, client_id: str = None):
        super().__init__(message)
        self.client_id = client_id


class OpportunityStore:
    """Append-only store for detected opportunities."""

    def __init__(self, db: Session):
        self.db = db

    def insert_many(
        self,
        client_id: str,
        opportunities: Sequence,
    ) -> List[DetectedOpportunity]:
        """
        Bulk insert opportunities for a client.

        Args:
            client_id: Client/account identifier
            opportunities: Opportunity objects from the detector

        Returns:
            Persisted rows (empty list when nothing was detected)

        Raises:
            OpportunityStoreError: If the insert fails (session is rolled back)
        """
        if not opportunities:
            logger.info("No opportunities detected, nothing to store")
            return []

        logger.info(f"Storing {len(opportunities)} opportunities for client {client_id}")

        try:
            records = [
                DetectedOpportunity(
                    client_id=client_id,
                    category=opp.category,
                    title=opp.title,
                    description=opp.description,
                    evidence=opp.evidence,
                    impact_score=opp.impact_score,
                    evidence_strength=opp.evidence_strength,
                    service_alignment=opp.service_alignment,
                    priority=opp.priority,
                    our_service=get_service_for_category(opp.category),
                    quick_win=opp.quick_win,
                    implementation_complexity=opp.implementation_complexity,
                    current_state_metric=opp.current_state_metric,
                    potential_improvement_metric=opp.potential_improvement_metric,
                    timeline_estimate=opp.timeline_estimate,
                    budget_range=opp.budget_range,
                    expected_outcome=opp.expected_outcome,
                    roi_potential=opp.roi_potential,
                )
                for opp in opportunities
            ]
            self.db.add_all(records)
            self.db.commit()

        except Exception as e:
            logger.error(f"Opportunity store error for client {client_id}: {e}")
            self.db.rollback()
            raise OpportunityStoreError(
                f"Failed to store opportunities: {e}", client_id=client_id
            ) from e

        logger.info(f"Stored {len(records)} opportunities for client {client_id}")
        return records

    def list_for_client(self, client_id: str) -> List[DetectedOpportunity]:
        """All opportunities recorded for a client, oldest first."""
        return (
            self.db.query(DetectedOpportunity)
            .filter(DetectedOpportunity.client_id == client_id)
            .order_by(DetectedOpportunity.created_at)
            .all()
        )
