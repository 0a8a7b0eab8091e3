# backend/staybook/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings, payments, procedures

__all__ = [
    "bookings",
    "payments",
    "procedures",
]
