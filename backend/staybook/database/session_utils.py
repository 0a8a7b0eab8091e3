"""
Dialect checks for code that only holds a Session.

Booking writes serialize differently per backend: PostgreSQL locks the
listing row, SQLite holds the database write lock for the whole transaction.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

SQLITE = "sqlite"


def get_dialect_name(session: Session) -> str:
    """Name of the dialect the session is bound to ("postgresql", "sqlite")."""
    return session.get_bind().dialect.name


def supports_row_locks(session: Session) -> bool:
    """SQLite has no SELECT ... FOR UPDATE; its transactions lock the whole file."""
    return get_dialect_name(session) != SQLITE
