# backend/staybook/main.py
from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request, Response

from .core.config import settings
from .core.request_context import REQUEST_ID_HEADER, configure_logging, request_scope
from .database import get_engine
from .routes import health, prometheus
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import payments as payments_v1
from .routes.v1 import procedures as procedures_v1

# Configure logging
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"Starting staybook API ({settings.environment})")
    yield
    get_engine().dispose()
    logger.info("staybook API stopped")


app = FastAPI(
    title="staybook",
    description="Listing bookings and payments",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)


@app.middleware("http")
async def attach_request_id(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log record of a request with its X-Request-ID (generated when absent)."""
    with request_scope(request.headers.get(REQUEST_ID_HEADER)) as request_id:
        response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(payments_v1.router, prefix="/payments")
api_v1.include_router(procedures_v1.router, prefix="/procedures")

app.include_router(api_v1)
app.include_router(health.router)
if settings.metrics_enabled:
    app.include_router(prometheus.router)
