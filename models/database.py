"""
Database Configuration Module
=============================

Provides SQLAlchemy database engine and session management for the
document-management store hydrated by the Cedar flow.

The URL comes from DOCMGMT_DATABASE_URL. The default is a local SQLite
file for portability; the docker-compose setup points it at PostgreSQL
(postgresql+psycopg://...). The engine is created on first use, so a bad
URL surfaces as a ConfigurationError from the command that needs it.
"""

from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from core.config import database_url
from core.errors import ConfigurationError, DataAccessError


def make_engine(url: str, **kwargs):
    """
    Create an engine for the given URL.

    SQLite connections are shared across threads by the CLI runner, so the
    same-thread check is disabled for that dialect only.

    Raises:
        ConfigurationError: the URL is malformed or names an unknown dialect
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    try:
        return create_engine(url, echo=False, **kwargs)
    except ArgumentError as e:
        raise ConfigurationError(f"invalid database URL {url!r}: {e}") from e


engine = None

# Session factory, bound to the engine on first use
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

# Base class for declarative models
Base = declarative_base()


def get_engine():
    """Return the engine for DOCMGMT_DATABASE_URL, creating it once."""
    global engine
    if engine is None:
        engine = make_engine(database_url())
    return engine


def _bound_factory():
    if SessionLocal.kw.get('bind') is None:
        SessionLocal.configure(bind=get_engine())
    return SessionLocal


@contextmanager
def get_session():
    """
    Context manager for database sessions.

    Ensures proper session lifecycle management with automatic
    commit on success and rollback on failure.

    Usage:
        with get_session() as session:
            context = EntityLoader(session).load("alice", "doc1")
    """
    session = _bound_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind=None):
    """
    Initialize the database schema.

    Creates all tables defined in the models if they don't exist.
    Safe to call multiple times.
    """
    from . import entities  # noqa: F401 - Ensure models are loaded
    try:
        Base.metadata.create_all(bind=bind or _bound_factory().kw['bind'])
    except SQLAlchemyError as e:
        raise DataAccessError(f"schema creation failed: {e}") from e


def reset_db(bind=None):
    """
    Reset the database by dropping and recreating all tables.

    WARNING: This destroys all data. Use only for development/testing.
    """
    from . import entities  # noqa: F401
    target = bind or _bound_factory().kw['bind']
    try:
        Base.metadata.drop_all(bind=target)
        Base.metadata.create_all(bind=target)
    except SQLAlchemyError as e:
        raise DataAccessError(f"schema reset failed: {e}") from e
