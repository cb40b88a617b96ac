"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults (SQLite gets a single shared connection)
- Table definitions for the ledger: accounts, plans, subscriptions

Every ledger record is keyed by its deterministic address, so "slot already
occupied" is a primary-key violation and surfaces as IntegrityError.
"""
from typing import Iterator, Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, BigInteger, String, Text, Index, UniqueConstraint, text
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker, Session
import logging
import os

from subledger.core.config import settings

logger = logging.getLogger("subledger")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return settings.DATABASE_URL


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection or each session sees an empty DB
        _engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if _is_memory_sqlite(url) else None,
            echo=False,
        )
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )

    # Create session factory
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session() -> Iterator[Session]:
    """
    Context manager for one ledger transaction.

    Commits when the block exits normally and rolls back on any exception,
    so an operation either applies all of its writes or none of them.

    Usage:
        with get_db_session() as session:
            session.execute(...)
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


def check_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False


# Lamport balances per identity
accounts = Table(
    'accounts',
    metadata,
    Column('identity', String(100), primary_key=True),
    Column('lamports', BigInteger, nullable=False, server_default='0'),
    Column('updated_at', BigInteger, nullable=False),
)

# Plan records, one per (creator, plan_id)
plans = Table(
    'plans',
    metadata,
    Column('address', String(64), primary_key=True),
    Column('creator', String(100), nullable=False),
    # u64 does not fit a signed BIGINT, kept as its decimal string
    Column('plan_id', String(20), nullable=False),
    Column('name', Text, nullable=False),
    Column('price', BigInteger, nullable=False),
    Column('duration_days', Integer, nullable=False),
    Column('created_at', BigInteger, nullable=False),
    Column('rent_lamports', BigInteger, nullable=False),
    UniqueConstraint('creator', 'plan_id', name='uq_plans_creator_plan_id'),
    Index('idx_plans_created_at', 'created_at'),
)

# Subscription records, one per (subscriber, creator)
subscriptions = Table(
    'subscriptions',
    metadata,
    Column('address', String(64), primary_key=True),
    Column('subscriber', String(100), nullable=False),
    Column('creator', String(100), nullable=False),
    Column('plan_id', String(20), nullable=False),
    Column('created_at', BigInteger, nullable=False),
    Column('expires_at', BigInteger, nullable=False),
    Column('rent_lamports', BigInteger, nullable=False),
    UniqueConstraint('subscriber', 'creator', name='uq_subscriptions_subscriber_creator'),
    # Aggregation pattern: subscribers per (creator, plan_id)
    Index('idx_subscriptions_creator_plan', 'creator', 'plan_id'),
    Index('idx_subscriptions_subscriber', 'subscriber'),
)
