"""
Enums used across the fuel_delivery_core package.

This module contains enum definitions that are used by multiple modules
to avoid circular import issues. The OrderStatus values are part of the
wire contract and must not change.
"""

import enum
from typing import Dict, FrozenSet


class OrderStatus(str, enum.Enum):
    """Order lifecycle states."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    SCHEDULED = "SCHEDULED"
    EN_ROUTE = "EN_ROUTE"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


class UserRole(str, enum.Enum):
    """Roles a tenant user can hold."""

    ADMIN = "ADMIN"
    DISPATCHER = "DISPATCHER"
    DRIVER = "DRIVER"
    CLIENT_REP = "CLIENT_REP"


class ResourceType(str, enum.Enum):
    """Resource kinds guarded by the access policy."""

    CLIENT = "client"
    LOCATION = "location"
    TRUCK = "truck"
    ORDER = "order"
    ACTIVITY_LOG = "activity_log"


class PolicyAction(str, enum.Enum):
    """Actions an actor can attempt on a resource."""

    VIEW_ANY = "view_any"
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TOGGLE_ACTIVE = "toggle_active"
    SUBMIT = "submit"
    SCHEDULE = "schedule"
    DISPATCH = "dispatch"
    DELIVER = "deliver"
    CANCEL = "cancel"


TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

# Statuses that hold a truck for their delivery window
ACTIVE_TRUCK_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.SCHEDULED, OrderStatus.EN_ROUTE}
)

# Lifecycle transition -> (allowed source statuses, target status)
ORDER_TRANSITIONS: Dict[PolicyAction, tuple] = {
    PolicyAction.SUBMIT: (frozenset({OrderStatus.DRAFT}), OrderStatus.SUBMITTED),
    PolicyAction.SCHEDULE: (frozenset({OrderStatus.SUBMITTED}), OrderStatus.SCHEDULED),
    PolicyAction.DISPATCH: (frozenset({OrderStatus.SCHEDULED}), OrderStatus.EN_ROUTE),
    PolicyAction.DELIVER: (frozenset({OrderStatus.EN_ROUTE}), OrderStatus.DELIVERED),
    PolicyAction.CANCEL: (
        frozenset(
            {
                OrderStatus.DRAFT,
                OrderStatus.SUBMITTED,
                OrderStatus.SCHEDULED,
                OrderStatus.EN_ROUTE,
            }
        ),
        OrderStatus.CANCELLED,
    ),
}


def can_transition(current: OrderStatus, action: PolicyAction) -> bool:
    """True if the lifecycle action is allowed from the current status."""
    sources, _ = ORDER_TRANSITIONS[action]
    return OrderStatus(current) in sources
