"""
Role-based access policy.

A single table maps (resource type, action) to the roles that may perform it
unconditionally. A second table lists roles that are admitted only when an
ownership predicate holds for the concrete resource, such as a driver acting
on an order assigned to them. ``authorize`` is pure; ``ensure_authorized``
raises AuthorizationError for a denied request.
"""

from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple, Union

from ..context.tenant_context import TenantContext
from ..enums import PolicyAction, ResourceType, UserRole
from ..exceptions import permission_denied
from ..schemas.user_schema import Actor

ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)
STAFF: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.DISPATCHER})
ADMIN_ONLY: FrozenSet[UserRole] = frozenset({UserRole.ADMIN})

PolicyKey = Tuple[ResourceType, PolicyAction]

POLICY_TABLE: Dict[PolicyKey, FrozenSet[UserRole]] = {
    # Clients
    (ResourceType.CLIENT, PolicyAction.VIEW_ANY): ALL_ROLES,
    (ResourceType.CLIENT, PolicyAction.VIEW): STAFF,
    (ResourceType.CLIENT, PolicyAction.CREATE): STAFF,
    (ResourceType.CLIENT, PolicyAction.UPDATE): STAFF,
    (ResourceType.CLIENT, PolicyAction.DELETE): ADMIN_ONLY,
    # Locations
    (ResourceType.LOCATION, PolicyAction.VIEW_ANY): ALL_ROLES,
    (ResourceType.LOCATION, PolicyAction.VIEW): STAFF,
    (ResourceType.LOCATION, PolicyAction.CREATE): STAFF,
    (ResourceType.LOCATION, PolicyAction.UPDATE): STAFF,
    (ResourceType.LOCATION, PolicyAction.DELETE): STAFF,
    # Trucks
    (ResourceType.TRUCK, PolicyAction.VIEW_ANY): ALL_ROLES,
    (ResourceType.TRUCK, PolicyAction.VIEW): ALL_ROLES,
    (ResourceType.TRUCK, PolicyAction.CREATE): ADMIN_ONLY,
    (ResourceType.TRUCK, PolicyAction.UPDATE): STAFF,
    (ResourceType.TRUCK, PolicyAction.DELETE): ADMIN_ONLY,
    (ResourceType.TRUCK, PolicyAction.TOGGLE_ACTIVE): STAFF,
    # Orders
    (ResourceType.ORDER, PolicyAction.VIEW_ANY): ALL_ROLES,
    (ResourceType.ORDER, PolicyAction.VIEW): STAFF,
    (ResourceType.ORDER, PolicyAction.CREATE): STAFF,
    (ResourceType.ORDER, PolicyAction.UPDATE): STAFF,
    (ResourceType.ORDER, PolicyAction.DELETE): STAFF,
    (ResourceType.ORDER, PolicyAction.SUBMIT): STAFF,
    (ResourceType.ORDER, PolicyAction.SCHEDULE): STAFF,
    (ResourceType.ORDER, PolicyAction.DISPATCH): STAFF,
    (ResourceType.ORDER, PolicyAction.DELIVER): ADMIN_ONLY,
    (ResourceType.ORDER, PolicyAction.CANCEL): STAFF,
    # Activity log
    (ResourceType.ACTIVITY_LOG, PolicyAction.VIEW_ANY): ADMIN_ONLY,
    (ResourceType.ACTIVITY_LOG, PolicyAction.VIEW): ADMIN_ONLY,
}


def driver_owns_order(actor: Actor, order: Any) -> bool:
    """The order is assigned to the acting driver."""
    return order is not None and getattr(order, "driver_id", None) == actor.id


OwnershipRule = Tuple[FrozenSet[UserRole], Callable[[Actor, Any], bool]]

OWNERSHIP_RULES: Dict[PolicyKey, OwnershipRule] = {
    (ResourceType.ORDER, PolicyAction.VIEW): (frozenset({UserRole.DRIVER}), driver_owns_order),
    (ResourceType.ORDER, PolicyAction.DELIVER): (frozenset({UserRole.DRIVER}), driver_owns_order),
}


def _same_tenant(actor: Actor, tenant: Optional[TenantContext], resource: Any) -> bool:
    if tenant is not None and actor.tenant_id != tenant.tenant_id:
        return False
    resource_tenant = getattr(resource, "tenant_id", None) if resource is not None else None
    if resource_tenant is not None and resource_tenant != actor.tenant_id:
        return False
    return True


def authorize(
    actor: Actor,
    action: Union[PolicyAction, str],
    resource_type: Union[ResourceType, str],
    resource: Any = None,
    tenant: Optional[TenantContext] = None,
) -> bool:
    """
    Decide whether the actor may perform the action.

    Args:
        actor: The acting user
        action: Action being attempted
        resource_type: Kind of resource acted upon
        resource: The concrete resource, needed for ownership rules
        tenant: Tenant the operation runs for; actors of another tenant are denied

    Returns:
        True if allowed. Unknown (resource, action) pairs are denied.
    """
    action = PolicyAction(action)
    resource_type = ResourceType(resource_type)

    if not _same_tenant(actor, tenant, resource):
        return False

    key = (resource_type, action)
    if actor.role in POLICY_TABLE.get(key, frozenset()):
        return True

    rule = OWNERSHIP_RULES.get(key)
    if rule is not None:
        roles, predicate = rule
        return actor.role in roles and predicate(actor, resource)
    return False


def ensure_authorized(
    actor: Actor,
    action: Union[PolicyAction, str],
    resource_type: Union[ResourceType, str],
    resource: Any = None,
    tenant: Optional[TenantContext] = None,
) -> None:
    """Raise AuthorizationError unless ``authorize`` allows the request."""
    if not authorize(actor, action, resource_type, resource=resource, tenant=tenant):
        action_value = PolicyAction(action).value
        resource_value = ResourceType(resource_type).value
        raise permission_denied(
            action_value,
            resource_value,
            actor_id=actor.id,
            actor_role=actor.role.value,
            resource_id=getattr(resource, "id", None),
        )
