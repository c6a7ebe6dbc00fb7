"""
Database Sessions

One lazily created engine per process. PostgreSQL when a URL is configured,
a local SQLite file otherwise. Request handlers get a session through
get_db(); scripts use get_db_context().
"""

import os
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from src.utils.config import get_settings
from .models import Base

logger = logging.getLogger(__name__)

_engine = None
_SessionLocal = None


def get_database_url() -> str:
    """
    Resolve the database URL.

    DATABASE_URL (settings), then POSTGRES_URL, then SQLITE_PATH.
    """
    for var, url in (
        ("DATABASE_URL", get_settings().DATABASE_URL),
        ("POSTGRES_URL", os.getenv("POSTGRES_URL")),
    ):
        if url:
            # SQLAlchemy only accepts the postgresql:// scheme
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            logger.info(f"Using database from {var}")
            return url

    sqlite_path = os.getenv("SQLITE_PATH", "bi_aggregator_dev.db")
    logger.warning(f"No DATABASE_URL found, using SQLite: {sqlite_path}")
    return f"sqlite:///{sqlite_path}"


def get_engine() -> Engine:
    """Engine for the configured database, created on first use."""
    global _engine
    if _engine is None:
        url = get_database_url()
        echo = os.getenv("SQL_DEBUG", "false").lower() == "true"

        if url.startswith("postgresql"):
            _engine = create_engine(
                url,
                pool_size=5,
                max_overflow=10,
                pool_recycle=1800,
                pool_pre_ping=True,
                echo=echo,
            )
        else:
            _engine = create_engine(url, connect_args={"check_same_thread": False}, echo=echo)

        logger.info(f"Created {_engine.dialect.name} engine")
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        # Cached entries and opportunity rows are read after commit
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session for scripts; commits on success, rolls back on error."""
    db = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the cache and opportunity tables if they don't exist."""
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables ready")


def check_db_connection() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
