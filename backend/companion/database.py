"""
Remote store database configuration.

The remote store is optional: when DATABASE_URL is not set every accessor
returns None and the application runs in local-only mode.
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from companion.config import settings

logger = logging.getLogger(__name__)

# Lazy initialization globals
_engine = None
_SessionLocal = None


class Base(DeclarativeBase):
    pass


def is_remote_configured() -> bool:
    return bool(settings.DATABASE_URL)


def get_engine():
    """
    Get or create the database engine.

    Returns None when no remote store is configured.
    """
    global _engine

    if _engine is not None:
        return _engine

    if not is_remote_configured():
        return None

    database_url = settings.DATABASE_URL
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    _engine = create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    logger.info("Remote store engine created (%s)", _engine.dialect.name)
    return _engine


def get_session_local():
    """Get or create the SessionLocal factory, or None in local-only mode."""
    global _SessionLocal

    if _SessionLocal is None:
        engine = get_engine()
        if engine is None:
            return None

        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=engine
        )

    return _SessionLocal


def init_db():
    """Create tables on the remote store if one is configured."""
    engine = get_engine()
    if engine is None:
        logger.info("No remote store configured - running in local-only mode")
        return False
    # Register models on Base.metadata
    from companion import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    return True


def reset_engine():
    """Dispose the cached engine so the next access re-reads settings."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_db():
    """FastAPI dependency: yield a DB session per request (None in local-only mode)."""
    session_factory = get_session_local()
    if session_factory is None:
        yield None
        return
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
