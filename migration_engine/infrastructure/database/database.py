#migration_engine\infrastructure\database\database.py

"""SQLAlchemy database setup and session management."""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from migration_engine.infrastructure.database.config import DatabaseSettings


# ============================================
# Base for ORM models
# ============================================
Base = declarative_base()


# ============================================
# Engine configuration
# ============================================
def create_db_engine(settings: Optional[DatabaseSettings] = None) -> Engine:
    """Create SQLAlchemy engine for the snapshot store."""
    settings = settings or DatabaseSettings()

    kwargs = {"echo": settings.echo_sql, "pool_pre_ping": True}
    if settings.database_url.startswith("sqlite"):
        # sessions may be used from a different thread than the one that opened them
        kwargs["connect_args"] = {"check_same_thread": False}

    return create_engine(settings.database_url, **kwargs)


# ============================================
# Session factory function
# ============================================
def get_session_factory(engine_instance: Engine) -> sessionmaker:
    """
    Get a session factory bound to the given engine.

    Tests inject their own engine (temporary SQLite file).
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine_instance,
        expire_on_commit=False
    )


# ============================================
# Database initialization
# ============================================
def init_db(engine_instance: Engine) -> None:
    """Create all tables."""
    # registers the ORM tables on Base.metadata
    from migration_engine.infrastructure.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine_instance)


def drop_db(engine_instance: Engine) -> None:
    """Drop all tables (for testing only)."""
    Base.metadata.drop_all(bind=engine_instance)
