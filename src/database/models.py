"""
SQLAlchemy Models for the Business Intelligence Aggregator

Two tables:
1. business_intelligence_cache - one merged provider result per domain (upserted)
2. detected_opportunities - append-only log of opportunities per client
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text,
    Index, CheckConstraint, JSON, Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite for local development)
JSONType = JSON().with_variant(JSONB, "postgresql")


class BusinessIntelligenceCache(Base):
    """Merged provider data for a domain, valid until cache_expires_at"""
    __tablename__ = "business_intelligence_cache"

    id = Column(Uuid, primary_key=True, default=uuid4)
    company_domain = Column(String(255), nullable=False, unique=True)

    # Raw normalized provider records (None when the provider failed)
    apollo_data = Column(JSONType)
    dataforseo_data = Column(JSONType)
    wappalyzer_data = Column(JSONType)

    # Quality & cost
    data_quality_score = Column(Integer, nullable=False, default=0)
    total_api_cost = Column(Float, nullable=False, default=0)

    # Provenance
    data_sources_complete = Column(JSONType, default=list)
    data_sources_failed = Column(JSONType, default=list)

    # Expiry
    cache_expires_at = Column(DateTime, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "data_quality_score >= 0 AND data_quality_score <= 100",
            name="ck_bi_cache_quality_range",
        ),
        Index("idx_bi_cache_expiry", "company_domain", "cache_expires_at"),
    )


class DetectedOpportunity(Base):
    """A detected gap or weakness, owned by a client account"""
    __tablename__ = "detected_opportunities"

    id = Column(Uuid, primary_key=True, default=uuid4)
    client_id = Column(String(64), nullable=False)

    # What
    category = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    evidence = Column(Text)

    # Scores (1-10)
    impact_score = Column(Integer, nullable=False)
    evidence_strength = Column(Integer, nullable=False)
    service_alignment = Column(Integer, nullable=False)
    priority = Column(String(20))

    # Service mapping (denormalized display field)
    our_service = Column(String(255))

    # Effort & value
    quick_win = Column(Boolean, default=False)
    implementation_complexity = Column(String(20))
    current_state_metric = Column(String(255))
    potential_improvement_metric = Column(String(255))
    timeline_estimate = Column(String(100))
    budget_range = Column(String(100))
    expected_outcome = Column(Text)
    roi_potential = Column(String(255))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("impact_score BETWEEN 1 AND 10", name="ck_opp_impact_range"),
        CheckConstraint("evidence_strength BETWEEN 1 AND 10", name="ck_opp_evidence_range"),
        CheckConstraint("service_alignment BETWEEN 1 AND 10", name="ck_opp_alignment_range"),
        Index("idx_opportunity_client", "client_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": str(self.id) if self.id else None,
            "client_id": self.client_id,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "evidence": self.evidence,
            "impact_score": self.impact_score,
            "evidence_strength": self.evidence_strength,
            "service_alignment": self.service_alignment,
            "priority": self.priority,
            "our_service": self.our_service,
            "quick_win": self.quick_win,
            "implementation_complexity": self.implementation_complexity,
            "current_state_metric": self.current_state_metric,
            "potential_improvement_metric": self.potential_improvement_metric,
            "timeline_estimate": self.timeline_estimate,
            "budget_range": self.budget_range,
            "expected_outcome": self.expected_outcome,
            "roi_potential": self.roi_potential,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
