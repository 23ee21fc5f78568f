import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from resume_reviewer.app.core.config import get_settings

log = logging.getLogger(__name__)

# Global variables for engine and sessionmaker
_engine = None
_SessionLocal = None


def get_engine():
    """Get or create the database engine.

    Args:
        None

    Returns:
        Engine: The SQLAlchemy engine instance used to connect to the database.

    Notes:
        1. Create the engine only when first accessed to avoid premature connection.
        2. Reuse the same engine instance on subsequent calls to ensure consistency.
        3. SQLite URLs get `check_same_thread=False` since sessions are used from worker threads.

    """
    global _engine
    if _engine is None:
        _msg = "Creating database engine"
        log.debug(_msg)
        settings = get_settings()
        connect_args = {}
        if settings.database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(
            settings.database_url,
            echo=settings.db_echo,
            connect_args=connect_args,
        )
    return _engine


def get_session_local():
    """Get or create the session local factory.

    Args:
        None

    Returns:
        sessionmaker: The SQLAlchemy sessionmaker instance used to create database sessions.

    Notes:
        1. Create the sessionmaker only when first accessed to avoid premature configuration.
        2. Reuse the same sessionmaker instance on subsequent calls to ensure consistent session behavior.

    """
    global _SessionLocal
    if _SessionLocal is None:
        _msg = "Creating session local factory"
        log.debug(_msg)
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal
