"""
Per-request logging context.

Every record carries the request id of the API call that produced it and the
service operation it belongs to, so one booking or payment request can be
followed across the service, repository and transaction logs.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
import logging
from typing import Iterator, Optional

from .ulid_helper import generate_ulid

REQUEST_ID_HEADER = "X-Request-ID"

NO_REQUEST = "no-request"
NO_OPERATION = "-"

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] [%(operation)s] %(message)s"
)

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def current_request_id() -> str:
    return _request_id_var.get() or NO_REQUEST


@contextmanager
def request_scope(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind ``request_id`` (a fresh ULID when absent) for the enclosed work."""
    request_id = request_id or generate_ulid()
    token = _request_id_var.set(request_id)
    try:
        yield request_id
    finally:
        _request_id_var.reset(token)


class RequestIdFilter(logging.Filter):
    """Fill ``request_id`` and ``operation`` on records that lack them."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = current_request_id()
        if not hasattr(record, "operation"):
            record.operation = NO_OPERATION
        return True


def attach_request_id_filter(logger: Optional[logging.Logger] = None) -> None:
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with request ids on every record."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    attach_request_id_filter()
