# backend/staybook/routes/health.py
"""
Health check endpoint.

Used by load balancers and monitoring to confirm the process is up and the
database answers.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import get_db

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    environment: str
    database: bool
    timestamp: datetime


@router.get("/health", response_model=HealthCheckResponse)
def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """
    Basic health check endpoint.

    Returns:
        "healthy" when the database answers, "degraded" otherwise.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = True
        status = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db_status = False
        status = "degraded"

    return HealthCheckResponse(
        status=status,
        environment=settings.environment,
        database=db_status,
        timestamp=datetime.now(timezone.utc),
    )
