"""
Database engine + session factory.

Built once at import from DATABASE_URL — SQLite for local dev and tests,
Postgres in production. An empty DATABASE_URL disables persistence:
get_session_factory() returns None and get_session() raises ConfigurationError.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from jobcrm.config import DATABASE_URL
from jobcrm.errors import ConfigurationError


class Base(DeclarativeBase):
    pass


def build_engine(url):
    """Create an engine with per-dialect kwargs."""
    # Hosted Postgres often hands out postgres:// but SQLAlchemy 2.x requires postgresql://
    url = url.replace('postgres://', 'postgresql://', 1)
    if url.startswith('sqlite'):
        return create_engine(url, connect_args={'check_same_thread': False})
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


engine = None
SessionLocal = None


def init_session_factory(url=DATABASE_URL):
    """(Re)build the module-level engine and session factory. Returns the factory or None."""
    global engine, SessionLocal
    if not url:
        engine = None
        SessionLocal = None
        return None
    engine = build_engine(url)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    return SessionLocal


def get_session_factory():
    """Return the configured session factory, or None when persistence is disabled."""
    return SessionLocal


def get_session():
    """Return a new DB session."""
    if SessionLocal is None:
        raise ConfigurationError('Database not configured')
    return SessionLocal()


init_session_factory()
