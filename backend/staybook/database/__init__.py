"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase

from .engines import create_db_engine
from .session_utils import get_dialect_name, supports_row_locks
from .sessions import SessionLocal, get_db, get_db_session, get_engine


class Base(DeclarativeBase):
    """Declarative base for all staybook models."""


__all__ = [
    "Base",
    "SessionLocal",
    "create_db_engine",
    "get_db",
    "get_db_session",
    "get_dialect_name",
    "get_engine",
    "supports_row_locks",
]
