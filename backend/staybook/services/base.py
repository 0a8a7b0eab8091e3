# backend/staybook/services/base.py
"""
Base Service Pattern for staybook

Provides common functionality for all service classes including:
- Transaction management (isolation level, deadline, rollback)
- Classification of database constraint errors into domain errors
- Logging
- Performance monitoring
"""

from contextlib import contextmanager
from functools import wraps
import logging
import sqlite3
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.deadline import Deadline, check_deadline
from ..core.exceptions import (
    BookingConflictException,
    DomainException,
    OperationCancelledException,
    RepositoryException,
    ServiceException,
)
from ..database.session_utils import get_dialect_name
from ..models.booking import OVERLAP_CONSTRAINT_NAME
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# PostgreSQL SQLSTATEs
PG_EXCLUSION_VIOLATION = "23P01"
PG_QUERY_CANCELED = "57014"

# SQLite extended result code for RAISE(ABORT, ...) inside a trigger
SQLITE_CONSTRAINT_TRIGGER = getattr(sqlite3, "SQLITE_CONSTRAINT_TRIGGER", 1811)


def _driver_error(exc: BaseException) -> Any:
    if isinstance(exc, RepositoryException) and exc.__cause__ is not None:
        exc = exc.__cause__
    if isinstance(exc, DBAPIError):
        return exc.orig
    return None


def _sqlstate(orig: Any) -> Optional[str]:
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_overlap_violation(exc: BaseException) -> bool:
    """
    True when ``exc`` is the booking overlap guard rejecting a write.

    Decided from driver error codes only: SQLSTATE 23P01 or the constraint
    name on PostgreSQL, SQLITE_CONSTRAINT_TRIGGER on SQLite.
    """
    if isinstance(exc, RepositoryException):
        exc = exc.__cause__ or exc
    if not isinstance(exc, IntegrityError):
        return False
    orig = exc.orig
    if _sqlstate(orig) == PG_EXCLUSION_VIOLATION:
        return True
    diag = getattr(orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None) == OVERLAP_CONSTRAINT_NAME:
        return True
    return getattr(orig, "sqlite_errorcode", None) == SQLITE_CONSTRAINT_TRIGGER


def is_statement_timeout(exc: BaseException) -> bool:
    return _sqlstate(_driver_error(exc)) == PG_QUERY_CANCELED


class BaseService:
    """
    Base class for all service layer components.

    Provides common patterns for:
    - Database session management
    - Logging
    - Transaction handling
    - Performance monitoring
    """

    def __init__(self, db: Session):
        """
        Initialize base service.

        Args:
            db: Database session
        """
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def dialect_name(self) -> str:
        return get_dialect_name(self.db)

    @contextmanager
    def transaction(
        self,
        operation: str = "transaction",
        *,
        deadline: Optional[Deadline] = None,
        isolation_level: Optional[str] = None,
        **context: Any,
    ) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Commits on success; on any error rolls back and re-raises as a domain
        exception. Overlap-guard violations become BookingConflictException,
        other database failures ServiceException.

        Usage:
            with self.transaction("create_booking", deadline=deadline, listing_id=listing_id):
                # Do multiple operations
                self.booking_repository.create(...)
                # Note: commit is handled automatically

        Args:
            operation: Name used in logs, metrics and error details
            deadline: Checked on entry and before commit
            isolation_level: Applied when the transaction starts (not on SQLite,
                whose immediate transactions are already serializable)
            **context: Entity ids attached to error details
        """
        check_deadline(deadline, operation)
        try:
            self._begin(operation, deadline=deadline, isolation_level=isolation_level)
            yield self.db
            check_deadline(deadline, operation)
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except DomainException as e:
            self._rollback(operation, reason=type(e).__name__)
            raise
        except (SQLAlchemyError, RepositoryException) as e:
            self._rollback(operation, reason=type(e).__name__)
            if is_overlap_violation(e):
                prometheus_metrics.record_booking_conflict("constraint")
                self.logger.info(
                    "Overlap constraint rejected %s", operation, extra={"operation": operation, **context}
                )
                raise BookingConflictException(details={"operation": operation, **context}) from e
            if is_statement_timeout(e):
                raise OperationCancelledException(operation, reason="statement timeout") from e
            self.logger.error(f"Transaction failed: {str(e)}")
            raise ServiceException(
                "Database operation failed",
                details={"operation": operation, **context},
            ) from e
        except Exception as e:
            self.logger.error(f"Unexpected error in transaction: {str(e)}")
            self._rollback(operation, reason=type(e).__name__)
            raise

    def _begin(
        self,
        operation: str,
        *,
        deadline: Optional[Deadline],
        isolation_level: Optional[str],
    ) -> None:
        dialect = self.dialect_name
        if dialect == "sqlite":
            return
        if isolation_level:
            if self.db.in_transaction():
                # Isolation can only be set before the first statement of a transaction
                self.logger.warning(
                    f"{operation}: session already in a transaction, "
                    f"isolation level {isolation_level} not applied",
                    extra={"operation": operation, "isolation_level": isolation_level},
                )
            else:
                self.db.connection(execution_options={"isolation_level": isolation_level})
        remaining_ms = deadline.remaining_ms() if deadline is not None else None
        if dialect == "postgresql" and remaining_ms is not None:
            timeout_ms = min(remaining_ms, settings.statement_timeout_ms)
            self.db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))

    def _rollback(self, operation: str, *, reason: str) -> None:
        self.db.rollback()
        prometheus_metrics.record_rollback(operation, reason)

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, data):
                # Method implementation

        Args:
            operation_name: Name of the operation for metrics

        Returns:
            Decorator function
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time

                    # Only log if it's actually slow
                    if elapsed > settings.slow_operation_threshold_seconds and hasattr(
                        self, "logger"
                    ):
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    if settings.metrics_enabled:
                        prometheus_metrics.record_service_operation(
                            service=self.__class__.__name__,
                            operation=operation_name,
                            duration=elapsed,
                            status="success" if success else "error",
                            error_type=error_type,
                        )

            wrapper._operation_name = operation_name  # type: ignore[attr-defined]
            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log an operation with context.

        Args:
            operation: Operation name
            **context: Additional context to log
        """
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
