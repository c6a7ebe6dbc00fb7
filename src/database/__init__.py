"""
Business Intelligence Database Layer

Usage:
    from src.database import (
        # Session management
        init_db, get_db, get_db_context,

        # Models
        BusinessIntelligenceCache, DetectedOpportunity,

        # Repository
        OpportunityStore, OpportunityStoreError,
    )

    init_db()

    with get_db_context() as db:
        OpportunityStore(db).insert_many("client-123", opportunities)
"""

# Models
from .models import (
    Base,
    BusinessIntelligenceCache,
    DetectedOpportunity,
)

# Session management
from .session import (
    get_database_url,
    get_engine,
    get_session_factory,
    get_db,
    get_db_context,
    init_db,
    check_db_connection,
)

# Repository
from .repository import (
    SERVICE_BY_CATEGORY,
    DEFAULT_SERVICE,
    get_service_for_category,
    OpportunityStore,
    OpportunityStoreError,
)

__all__ = [
    # Models
    "Base",
    "BusinessIntelligenceCache",
    "DetectedOpportunity",
    # Session
    "get_database_url",
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_db_context",
    "init_db",
    "check_db_connection",
    # Repository
    "SERVICE_BY_CATEGORY",
    "DEFAULT_SERVICE",
    "get_service_for_category",
    "OpportunityStore",
    "OpportunityStoreError",
]
