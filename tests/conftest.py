"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import pytest
from typing import Dict, Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.database.models import Base
from src.utils.config import Settings

from helpers import make_tech_data


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Database session bound to the in-memory engine."""
    SessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no credentials and a short provider timeout."""
    return Settings(
        _env_file=None,
        APOLLO_API_KEY=None,
        DATAFORSEO_LOGIN=None,
        DATAFORSEO_PASSWORD=None,
        WAPPALYZER_API_KEY=None,
        PROVIDER_TIMEOUT=1.0,
    )


# ============================================================================
# Mock Data Fixtures
# ============================================================================

@pytest.fixture
def mock_company_data() -> Dict[str, Any]:
    """Normalized Apollo company record."""
    return {
        "name": "Example Corp",
        "domain": "example.com",
        "website": "https://example.com",
        "industry": "Software",
        "sub_industry": None,
        "employee_count": 120,
        "revenue": 15000000,
        "founded_year": 2012,
        "description": "Example Corp builds example software.",
        "city": "Austin",
        "state": "Texas",
        "country": "United States",
        "technologies": [],
        "data_source": "apollo",
        "retrieved_at": "2024-01-15T10:30:00",
    }


@pytest.fixture
def weak_seo_data() -> Dict[str, Any]:
    """SEO record that trips both SEO rules and the content gap rule."""
    return {
        "organic_keywords": 50,
        "estimated_traffic_value": 120.5,
        "top3_keywords": 2,
        "top10_keywords": 8,
        "top100_keywords": 40,
        "total_backlinks": 20,
        "referring_domains": 7,
        "referring_main_domains": 6,
        "domain_rank": 12,
        "competitors": [
            {"domain": "rival-one.com", "avg_position": 14.2, "sum_position": 900, "intersections": 85},
            {"domain": "rival-two.com", "avg_position": 21.0, "sum_position": 1300, "intersections": 40},
        ],
        "cost": 0.0301,
        "data_source": "dataforseo",
    }


@pytest.fixture
def strong_seo_data() -> Dict[str, Any]:
    """SEO record that trips no rules."""
    return {
        "organic_keywords": 1500,
        "estimated_traffic_value": 48000.0,
        "total_backlinks": 800,
        "referring_domains": 240,
        "domain_rank": 55,
        "competitors": [],
        "cost": 0.0301,
        "data_source": "dataforseo",
    }


@pytest.fixture
def bare_tech_data() -> Dict[str, Any]:
    """Technology profile with no marketing automation and no CRM."""
    return make_tech_data()


@pytest.fixture
def full_tech_data() -> Dict[str, Any]:
    """Technology profile with every insight flag set."""
    return make_tech_data(True, True, True, True)
