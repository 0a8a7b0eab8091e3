import io
import logging

from staybook.core.request_context import (
    LOG_FORMAT,
    RequestIdFilter,
    current_request_id,
    request_scope,
)


def _capture_logger(name: str) -> tuple[logging.Logger, io.StringIO]:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    logger = logging.getLogger(name)
    logger.handlers = [handler]
    logger.propagate = False
    logger.setLevel(logging.INFO)
    return logger, stream


def test_records_carry_request_id_and_operation() -> None:
    logger, stream = _capture_logger("staybook.test.request_context")

    with request_scope("req-42"):
        logger.info("Operation: create_booking", extra={"operation": "create_booking"})
    logger.info("outside")

    first, second = stream.getvalue().splitlines()
    assert "[req-42] [create_booking] Operation: create_booking" in first
    assert "[no-request] [-] outside" in second


def test_request_scope_generates_and_restores_ids() -> None:
    with request_scope() as outer:
        assert len(outer) == 26
        with request_scope("inner"):
            assert current_request_id() == "inner"
        assert current_request_id() == outer
    assert current_request_id() == "no-request"
