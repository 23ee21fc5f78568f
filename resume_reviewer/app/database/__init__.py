"""This module provides database configuration and session management for the application.

The database backs the key-value record store. The engine and session factory
are created lazily from the application settings.

Functions:
    get_engine: Returns the SQLAlchemy engine instance for the database.
    get_session_local: Returns the SQLAlchemy session factory for creating database sessions.

"""

from .database import get_engine, get_session_local

__all__ = ["get_engine", "get_session_local"]
