"""Context management for operations and tenant isolation."""

from .operation_context import OperationContext, operation
from .service_decorators import handle_service_errors, is_serialization_failure, transactional
from .tenant_context import TenantContext

__all__ = [
    "operation",
    "OperationContext",
    "handle_service_errors",
    "is_serialization_failure",
    "transactional",
    "TenantContext",
]
