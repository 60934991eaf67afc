"""Authorization for the fuel delivery core."""

from .access_policy import (
    OWNERSHIP_RULES,
    POLICY_TABLE,
    authorize,
    driver_owns_order,
    ensure_authorized,
)

__all__ = [
    "OWNERSHIP_RULES",
    "POLICY_TABLE",
    "authorize",
    "driver_owns_order",
    "ensure_authorized",
]
