"""
Error hierarchy for the fuel delivery core.

Every error carries an ``ErrorCode``, the HTTP status a boundary should map
it to, an error id and free-form context, and logs itself when raised.
Boundaries only ever need to handle four kinds: ValidationError (400),
AuthorizationError (403), NotFoundError (404) and DomainError (409/422).
RepositoryError and ServiceError are the 500s.
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

_thread_local = threading.local()

# Context keys that never appear in a client-facing payload
_PRIVATE_CONTEXT = ("cause", "error_id", "correlation_id")


class ErrorCode(str, Enum):
    """Stable error codes; the leading digit groups them."""

    # 1xxx infrastructure
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONFIGURATION_ERROR = "1003"
    SERIALIZATION_FAILURE = "1005"

    # 2xxx input
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"
    OUT_OF_RANGE = "2005"

    # 3xxx resources
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    CONFLICT = "3002"

    # 4xxx order rules and permissions
    BUSINESS_RULE_VIOLATION = "4000"
    INVALID_STATE_TRANSITION = "4001"
    CAPACITY_EXCEEDED = "4002"
    PERMISSION_DENIED = "4003"
    PRECONDITION_FAILED = "4004"
    CONSTRAINT_VIOLATION = "4005"


def _describe_cause(cause: BaseException) -> Dict[str, Any]:
    return {
        "type": type(cause).__name__,
        "message": str(cause),
        "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
    }


class BaseError(Exception):
    """
    Root of every error raised by the package.

    Subclasses pick their defaults through ``default_code`` and
    ``default_status``; ``error_code`` and ``status_code`` override them per
    raise. ``cause`` keeps the wrapped exception, and its type, message and
    traceback are copied into ``context["cause"]``.
    """

    default_code = ErrorCode.INTERNAL_ERROR
    default_status = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.status_code = status_code or self.default_status
        self.cause = cause
        self.error_id = str(uuid.uuid4())
        self.timestamp = datetime.now(timezone.utc).isoformat()

        self.context = context
        self.context["error_id"] = self.error_id
        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id
        if cause is not None:
            self.context["cause"] = _describe_cause(cause)

        self._log()

    def _log(self) -> None:
        # Late import: the logger pulls in config at import time
        from .utils.logger import get_logger

        fields = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "context": {k: v for k, v in self.context.items() if k != "cause"},
        }
        if "correlation_id" in self.context:
            fields["correlation_id"] = self.context["correlation_id"]

        logger = get_logger()
        if self.status_code >= 500:
            logger.error(f"{type(self).__name__} {self.error_code.value}: {self.message}",
                         extra=fields, exc_info=self.cause)
        elif self.status_code >= 400:
            logger.warning(f"{type(self).__name__} {self.error_code.value}: {self.message}",
                           extra=fields)
        else:
            logger.info(f"{type(self).__name__} {self.error_code.value}: {self.message}",
                        extra=fields)

    def to_dict(self, include_cause: bool = False, include_traceback: bool = False) -> Dict[str, Any]:
        """
        Payload for a boundary to return to its caller.

        The cause is left out unless asked for; its traceback additionally
        needs ``include_traceback``.
        """
        body: Dict[str, Any] = {
            "id": self.error_id,
            "type": type(self).__name__,
            "code": self.error_code.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "context": {k: v for k, v in self.context.items() if k not in _PRIVATE_CONTEXT},
        }
        if "correlation_id" in self.context:
            body["correlation_id"] = self.context["correlation_id"]

        cause = self.context.get("cause")
        if include_cause and cause:
            body["cause"] = {"type": cause["type"], "message": cause["message"]}
            if include_traceback:
                body["cause"]["traceback"] = cause["traceback"]

        return {"error": body}

    def add_context(self, **kwargs: Any) -> "BaseError":
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """This error followed by each ``cause`` in turn."""
        chain: List[Exception] = []
        current: Optional[Exception] = self
        while current is not None:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


class RepositoryError(BaseError):
    """Storage failure not attributable to the caller's input."""

    default_code = ErrorCode.DATABASE_ERROR


class ServiceError(BaseError):
    """Unexpected failure inside a service operation."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        if operation:
            context["operation"] = operation
        super().__init__(message, error_code, 500, cause, **context)


class ValidationError(BaseError):
    """Malformed or missing input. No mutation is attempted."""

    default_code = ErrorCode.VALIDATION_FAILED
    default_status = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        if field:
            context["field"] = field
        super().__init__(message, error_code, None, cause, **context)


class NotFoundError(BaseError):
    """
    Referenced entity is absent.

    Entities owned by another tenant raise this too, so a cross-tenant
    reference cannot be told apart from a missing one.
    """

    default_code = ErrorCode.NOT_FOUND
    default_status = 404

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        if resource_type:
            context["resource_type"] = resource_type
        super().__init__(message, None, None, cause, **context)


class DomainError(BaseError):
    """A lifecycle precondition or business rule was violated."""

    default_code = ErrorCode.BUSINESS_RULE_VIOLATION
    default_status = 422


class AuthorizationError(BaseError):
    """The acting user's role does not permit the requested action."""

    default_code = ErrorCode.PERMISSION_DENIED
    default_status = 403

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        resource: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        if action:
            context["action"] = action
        if resource:
            context["resource"] = resource
        super().__init__(message, None, None, cause, **context)


def _with_identifiers(message: str, identifiers: Dict[str, Any]) -> str:
    if not identifiers:
        return message
    return f"{message}: " + ", ".join(f"{k}={v}" for k, v in identifiers.items())


def not_found(resource_type: str, cause: Optional[Exception] = None, **identifiers) -> NotFoundError:
    """``not_found("Order", order_id=...)`` -> "Order not found: order_id=..."."""
    return NotFoundError(
        _with_identifiers(f"{resource_type} not found", identifiers),
        resource_type=resource_type,
        cause=cause,
        **identifiers,
    )


def duplicate(resource_type: str, cause: Optional[Exception] = None, **identifiers) -> DomainError:
    """A uniqueness rule (plate number, email, slug) was hit; 409."""
    return DomainError(
        _with_identifiers(f"Duplicate {resource_type}", identifiers),
        error_code=ErrorCode.DUPLICATE,
        status_code=409,
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


def validation_failed(
    field: str, value: Any, reason: str, cause: Optional[Exception] = None
) -> ValidationError:
    return ValidationError(
        f"Validation failed for {field}: {reason}",
        field=field,
        cause=cause,
        value=str(value),
        reason=reason,
    )


def from_pydantic(exc: Exception, model_name: str) -> ValidationError:
    """Convert a pydantic ValidationError into ours, keeping field-level detail."""
    errors = exc.errors() if hasattr(exc, "errors") else []
    first_field = None
    if errors and errors[0].get("loc"):
        first_field = ".".join(str(part) for part in errors[0]["loc"])
    return ValidationError(
        f"Invalid {model_name} data: {exc}",
        field=first_field,
        cause=exc,
        errors=[
            {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg"), "type": e.get("type")}
            for e in errors
        ],
    )


def permission_denied(
    action: str, resource: str, cause: Optional[Exception] = None, **context
) -> AuthorizationError:
    return AuthorizationError(
        f"Permission denied: {action} on {resource}",
        action=action,
        resource=resource,
        cause=cause,
        **context,
    )


def invalid_transition(
    order_id: str, current_status: str, action: str, required: str
) -> DomainError:
    """Lifecycle operation attempted from the wrong source state; 409."""
    return DomainError(
        f"Can only {action} orders in {required} status (order {order_id} is {current_status})",
        error_code=ErrorCode.INVALID_STATE_TRANSITION,
        status_code=409,
        order_id=order_id,
        current_status=current_status,
        action=action,
    )


# Correlation id, per thread
def set_correlation_id(correlation_id: str) -> None:
    _thread_local.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    return getattr(_thread_local, "correlation_id", None)


def clear_correlation_id() -> None:
    _thread_local.__dict__.pop("correlation_id", None)
