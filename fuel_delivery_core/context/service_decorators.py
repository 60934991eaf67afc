"""
Service layer decorators for reducing code duplication.

``transactional`` turns a service method into one unit of work on the
service's session: commit on success, rollback on any error, and a bounded
retry when the database reports a serialization or deadlock failure.
"""

from functools import wraps
from typing import Any, Callable, Optional, TypeVar, cast

from sqlalchemy.exc import DBAPIError, OperationalError

from ..config import get_config
from ..constants import SERIALIZATION_FAILURE_SQLSTATES
from ..exceptions import BaseError, ErrorCode, RepositoryError, ServiceError
from ..utils.logger import get_logger

F = TypeVar("F", bound=Callable[..., Any])


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_serialization_failure(exc: BaseException) -> bool:
    """True for errors that a retry of the whole unit of work can resolve."""
    if isinstance(exc, BaseError):
        return exc.error_code == ErrorCode.SERIALIZATION_FAILURE
    if isinstance(exc, DBAPIError):
        if _sqlstate(exc) in SERIALIZATION_FAILURE_SQLSTATES:
            return True
        return isinstance(exc, OperationalError) and "database is locked" in str(exc.orig).lower()
    return False


def handle_service_errors(operation_name: Optional[str] = None):
    """
    Decorator that lets package errors through and wraps anything else.

    Package errors (ValidationError, NotFoundError, DomainError, ...) already
    carry their meaning. Any other exception is handed to the service's
    ``_handle_service_exception`` so it surfaces as a ServiceError.

    Usage:
        @transactional()
        @handle_service_errors()
        def create_client(self, ...):
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            op_name = operation_name or func.__name__
            try:
                return func(self, *args, **kwargs)
            except BaseError:
                raise
            except Exception as e:
                if is_serialization_failure(e):
                    raise
                if hasattr(self, "_handle_service_exception"):
                    self._handle_service_exception(op_name, e)
                raise ServiceError(
                    f"Error in {op_name}: {str(e)}", operation=op_name, cause=e
                ) from e

        return cast(F, wrapper)

    return decorator


def transactional(retry_on_serialization_failure: bool = True):
    """
    Decorator to automatically handle database transactions in service methods.

    Commits the service's session when the method returns and rolls it back on
    any exception. A serialization or deadlock failure reruns the whole method
    up to ``config.transactions.max_serialization_retries`` times; nothing else
    is retried. Nested transactional calls on the same service join the outer
    unit of work.

    Usage:
        @transactional()
        def schedule_order(self, ...):
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            session = getattr(self, "session", None)
            if session is None or getattr(self, "_in_transaction", False):
                return func(self, *args, **kwargs)

            max_retries = (
                get_config().transactions.max_serialization_retries
                if retry_on_serialization_failure
                else 0
            )
            attempt = 0
            while True:
                self._in_transaction = True
                try:
                    result = func(self, *args, **kwargs)
                    session.commit()
                    return result
                except Exception as e:
                    session.rollback()
                    if not is_serialization_failure(e):
                        raise
                    if attempt < max_retries:
                        attempt += 1
                        get_logger().warning(
                            f"Serialization failure in {func.__name__}, retrying",
                            extra={"attempt": attempt, "max_retries": max_retries},
                        )
                        continue
                    if isinstance(e, BaseError):
                        raise
                    raise RepositoryError(
                        f"Serialization failure in {func.__name__} after {attempt + 1} attempts",
                        error_code=ErrorCode.SERIALIZATION_FAILURE,
                        cause=e,
                        attempts=attempt + 1,
                    ) from e
                finally:
                    self._in_transaction = False

        return cast(F, wrapper)

    return decorator
