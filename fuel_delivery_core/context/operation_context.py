"""
Operation context for service calls.

Every service method decorated with ``@operation()`` logs an ENTER line, then
either an EXIT line with its duration or an ERROR line tying the raised error
to the operation. Nested operations share one correlation id.
"""

import time
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar, Union, cast

from ..exceptions import BaseError, get_correlation_id, set_correlation_id
from ..utils.logger import ContextAwareLogger, get_logger
from .tenant_context import TenantContext


class OperationContext:
    """Identity and timing of one running operation."""

    def __init__(self, operation_name: str, correlation_id: Optional[str] = None, **context):
        self.operation_name = operation_name
        self.operation_id = str(uuid.uuid4())
        self.correlation_id = correlation_id or get_correlation_id() or str(uuid.uuid4())
        set_correlation_id(self.correlation_id)
        self.context = dict(context)
        self.started = time.perf_counter()

    @property
    def duration_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 3)

    def add_context(self, **kwargs) -> None:
        self.context.update(kwargs)

    def log_fields(self, **extra) -> Dict[str, Any]:
        """Context plus ids, ready to pass as a logger ``extra``."""
        return {
            **self.context,
            "operation_id": self.operation_id,
            "correlation_id": self.correlation_id,
            **extra,
        }


class OperationHandler:
    """Logs operation boundaries and enriches errors raised inside them."""

    def __init__(self, logger: Optional[ContextAwareLogger] = None):
        self.logger = logger if logger is not None else get_logger()

    @contextmanager
    def operation(self, name: str, **context):
        op_ctx = OperationContext(name, **context)
        self.logger.info(f"ENTER: {name}", extra=op_ctx.log_fields())

        try:
            yield op_ctx
        except BaseError as e:
            e.add_context(
                operation_name=name,
                operation_id=op_ctx.operation_id,
                operation_duration_ms=op_ctx.duration_ms,
            )
            log = self.logger.error if e.status_code >= 500 else self.logger.warning
            log(
                f"ERROR: {name} -> {e.error_code.value}: {e.message}",
                extra=op_ctx.log_fields(
                    duration_ms=op_ctx.duration_ms,
                    error_id=e.error_id,
                    error_code=e.error_code.value,
                    status="error",
                ),
            )
            raise
        except Exception as e:
            self.logger.exception(
                f"ERROR: {name} -> {type(e).__name__}: {e}",
                extra=op_ctx.log_fields(
                    duration_ms=op_ctx.duration_ms, error_type=type(e).__name__, status="error"
                ),
            )
            raise

        self.logger.info(
            f"EXIT: {name}",
            extra=op_ctx.log_fields(duration_ms=op_ctx.duration_ms, status="success"),
        )


F = TypeVar("F", bound=Callable[..., Any])

_SCALARS = (str, int, float, bool)


def _loggable(value: Any) -> Any:
    """Scalars and small containers as-is; anything else by type name."""
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, dict) and len(value) < 10:
        return {k: _loggable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)) and len(value) < 10:
        return [_loggable(v) for v in value]
    return type(value).__name__


def _find_tenant(args, kwargs) -> Optional[TenantContext]:
    for value in (*args, *kwargs.values()):
        if isinstance(value, TenantContext):
            return value
    return None


def _operation_name(func: Callable, args: tuple) -> str:
    """``<module>.<Class>.<method>`` for methods, ``<module>.<function>`` otherwise."""
    module_name = func.__module__.split(".")[-1]
    if args and not isinstance(args[0], _SCALARS + (TenantContext,)):
        return f"{module_name}.{type(args[0]).__name__}.{func.__name__}"
    return f"{module_name}.{func.__name__}"


def operation(name: Union[Optional[str], Callable] = None):
    """
    Decorator that runs the wrapped call inside an OperationHandler operation.

    Args:
        name: Optional operation name. Defaults to ``<module>.<Class>.<method>``.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            op_name = name if name is not None else _operation_name(func, args)

            context = {"source_module": func.__module__}
            tenant = _find_tenant(args, kwargs)
            if tenant is not None:
                context["tenant_id"] = tenant.tenant_id

            get_logger().debug(
                f"{op_name} called",
                extra={
                    "call_args": [
                        _loggable(a) for a in args[1:] if not isinstance(a, TenantContext)
                    ],
                    "call_kwargs": {k: _loggable(v) for k, v in kwargs.items()},
                },
            )

            with OperationHandler().operation(op_name, **context):
                return func(*args, **kwargs)

        return cast(F, wrapper)

    if callable(name):
        func, name = name, None
        return decorator(func)

    return decorator
