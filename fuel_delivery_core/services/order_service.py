"""
Order lifecycle engine.

Orders move DRAFT -> SUBMITTED -> SCHEDULED -> EN_ROUTE -> DELIVERED, and
can be CANCELLED from any non-terminal state. Each public mutation is one
unit of work:

1. load the order (and supporting rows) scoped to the tenant, so a missing
   or foreign row is NotFound before any authorization decision,
2. ask the access policy,
3. check the source state and the transition's guards,
4. apply every field change in a single flush,
5. record exactly one audit entry in the same transaction,
6. commit. Any error rolls the whole unit of work back.

Scheduling locks the truck row before the conflict query so two schedules
on one truck cannot both see a free window.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from ..config import get_config
from ..context.operation_context import operation
from ..context.service_decorators import handle_service_errors, transactional
from ..context.tenant_context import TenantContext
from ..db.db_order_models import Order
from ..enums import ORDER_TRANSITIONS, OrderStatus, PolicyAction, ResourceType, can_transition
from ..exceptions import DomainError, ErrorCode, ValidationError, invalid_transition, validation_failed
from ..policies.access_policy import ensure_authorized
from ..repositories.client_repository import ClientRepository
from ..repositories.location_repository import LocationRepository
from ..repositories.order_repository import OrderRepository
from ..repositories.truck_repository import TruckRepository
from ..repositories.user_repository import UserRepository
from ..schemas.mixins import require_window_order
from ..schemas.order_schema import (
    CancelOrderRequest,
    DeliverOrderRequest,
    DispatchOrderRequest,
    OrderCreate,
    OrderFilter,
    OrderRead,
    OrderUpdate,
    ScheduleOrderRequest,
)
from ..schemas.user_schema import Actor
from ..utils.time_utils import ensure_utc, utc_now
from .activity_log_service import (
    AuditRecorder,
    bind_recorder,
    entity_snapshot,
    record_created,
    record_deleted,
    record_order_transition,
    record_updated,
)
from .availability_service import AvailabilityService
from .base_service import SessionManagedService


class OrderService(SessionManagedService):
    """Creates, edits and moves fuel orders through their lifecycle."""

    def __init__(self, session=None, logger=None, audit: Optional[AuditRecorder] = None):
        super().__init__(session=session, logger=logger)
        self.repository = OrderRepository(self.session, self.logger)
        self.clients = ClientRepository(self.session, self.logger)
        self.locations = LocationRepository(self.session, self.logger)
        self.trucks = TruckRepository(self.session, self.logger)
        self.users = UserRepository(self.session, self.logger)
        self.availability = AvailabilityService(session=self.session, logger=self.logger)
        self.audit = bind_recorder(self.session, audit, self.logger)

    # ==================== GUARDS ====================

    @staticmethod
    def _require_status(order: Order, action: PolicyAction) -> None:
        if can_transition(order.status, action):
            return
        sources, _ = ORDER_TRANSITIONS[action]
        required = " or ".join(sorted(s.value for s in sources))
        raise invalid_transition(order.id, OrderStatus(order.status).value, action.value, required)

    @staticmethod
    def _require_draft(order: Order, action: str) -> None:
        if order.status != OrderStatus.DRAFT:
            raise invalid_transition(
                order.id, OrderStatus(order.status).value, action, OrderStatus.DRAFT.value
            )

    @staticmethod
    def _check_min_fuel(fuel_liters: int) -> None:
        minimum = get_config().orders.min_fuel_liters
        if fuel_liters < minimum:
            raise validation_failed(
                "fuel_liters", fuel_liters, f"must be at least {minimum} liters"
            )

    def _check_client_location(self, tenant: TenantContext, client_id: str, location_id: str) -> None:
        """Both rows exist in the tenant and the location belongs to the client."""
        self.clients.get_or_404(tenant.tenant_id, client_id)
        location = self.locations.get_or_404(tenant.tenant_id, location_id)
        if location.client_id != client_id:
            raise ValidationError(
                "Location does not belong to the specified client",
                field="location_id",
                client_id=client_id,
                location_id=location_id,
            )

    def _load(self, tenant: TenantContext, order_id: str, for_update: bool = False) -> Order:
        return self.repository.get_or_404(tenant.tenant_id, order_id, for_update=for_update)

    def _transition(
        self,
        tenant: TenantContext,
        actor: Actor,
        order: Order,
        new_status: OrderStatus,
        fields: Optional[Dict[str, Any]] = None,
        audit_data: Optional[Dict[str, Any]] = None,
    ) -> OrderRead:
        """Apply the new status and its side-effect fields in one flush, then audit."""
        old_status = OrderStatus(order.status)
        self.repository.update(tenant.tenant_id, order, {**(fields or {}), "status": new_status})
        record_order_transition(
            self.audit, tenant, actor, order, old_status, new_status, audit_data
        )
        self.logger.info(
            f"Order {order.id} transitioned from {old_status.value} to {new_status.value}",
            extra={
                "tenant_id": tenant.tenant_id,
                "order_id": order.id,
                "old_status": old_status.value,
                "new_status": new_status.value,
                "actor_id": actor.id,
            },
        )
        return self._to_read(OrderRead, order)

    # ==================== CREATE / EDIT ====================

    @operation()
    @transactional()
    @handle_service_errors()
    def create_order(
        self,
        tenant: TenantContext,
        actor: Actor,
        order_data: Union[OrderCreate, Mapping[str, Any]],
    ) -> OrderRead:
        """
        Create a DRAFT order created by the acting user.

        Raises:
            ValidationError: Malformed data, too little fuel, reversed window,
                or a location of a different client
            NotFoundError: Client or location not in this tenant
        """
        ensure_authorized(actor, PolicyAction.CREATE, ResourceType.ORDER, tenant=tenant)
        order_data = self._validate(OrderCreate, order_data)
        self._check_min_fuel(order_data.fuel_liters)
        self._check_client_location(tenant, order_data.client_id, order_data.location_id)

        order = self.repository.add(
            tenant.tenant_id,
            client_id=order_data.client_id,
            location_id=order_data.location_id,
            fuel_liters=order_data.fuel_liters,
            window_start=order_data.window_start,
            window_end=order_data.window_end,
            status=OrderStatus.DRAFT,
            created_by=actor.id,
        )
        record_created(self.audit, tenant, actor, ResourceType.ORDER, order)
        return self._to_read(OrderRead, order)

    @operation()
    @transactional()
    @handle_service_errors()
    def update_order(
        self,
        tenant: TenantContext,
        actor: Actor,
        order_id: str,
        changes: Union[OrderUpdate, Mapping[str, Any]],
    ) -> OrderRead:
        """
        Edit a DRAFT order. Unknown fields are rejected.

        The location/client pairing and the window order are checked on the
        merged result, so changing one side alone cannot break them.
        """
        order = self._load(tenant, order_id, for_update=True)
        ensure_authorized(actor, PolicyAction.UPDATE, ResourceType.ORDER, order, tenant=tenant)
        self._require_draft(order, "update")
        fields = self._validate(OrderUpdate, changes).changes()

        if "fuel_liters" in fields:
            self._check_min_fuel(fields["fuel_liters"])
        if "client_id" in fields or "location_id" in fields:
            self._check_client_location(
                tenant,
                fields.get("client_id", order.client_id),
                fields.get("location_id", order.location_id),
            )
        require_window_order(
            fields.get("window_start", ensure_utc(order.window_start)),
            fields.get("window_end", ensure_utc(order.window_end)),
        )

        before = entity_snapshot(order)
        self.repository.update(tenant.tenant_id, order, fields)
        record_updated(self.audit, tenant, actor, ResourceType.ORDER, order, before)
        return self._to_read(OrderRead, order)

    @operation()
    @transactional()
    @handle_service_errors()
    def delete_order(self, tenant: TenantContext, actor: Actor, order_id: str) -> None:
        """Delete a DRAFT order. The audit entry is written before the row goes."""
        order = self._load(tenant, order_id, for_update=True)
        ensure_authorized(actor, PolicyAction.DELETE, ResourceType.ORDER, order, tenant=tenant)
        self._require_draft(order, "delete")

        record_deleted(self.audit, tenant, actor, ResourceType.ORDER, order)
        self.repository.delete(tenant.tenant_id, order)

    # ==================== LIFECYCLE ====================

    @operation()
    @transactional()
    @handle_service_errors()
    def submit_order(self, tenant: TenantContext, actor: Actor, order_id: str) -> OrderRead:
        order = self._load(tenant, order_id, for_update=True)
        ensure_authorized(actor, PolicyAction.SUBMIT, ResourceType.ORDER, order, tenant=tenant)
        self._require_status(order, PolicyAction.SUBMIT)

        missing = [
            name for name in ("fuel_liters", "window_start", "window_end") if getattr(order, name) is None
        ]
        if missing:
            raise DomainError(
                "Order must have fuel_liters, window_start, and window_end to be submitted",
                order_id=order.id,
                missing_fields=missing,
            )

        return self._transition(tenant, actor, order, OrderStatus.SUBMITTED)

    @operation()
    @transactional()
    @handle_service_errors()
    def schedule_order(
        self, tenant: TenantContext, actor: Actor, order_id: str, truck_id: str
    ) -> OrderRead:
        """
        Assign a truck to a SUBMITTED order.

        Raises:
            NotFoundError: Order or truck not in this tenant
            DomainError: Inactive truck, capacity below the ordered volume, or
                another SCHEDULED/EN_ROUTE order on the truck overlaps the window
        """
        order = self._load(tenant, order_id, for_update=True)
        ensure_authorized(actor, PolicyAction.SCHEDULE, ResourceType.ORDER, order, tenant=tenant)
        self._require_status(order, PolicyAction.SCHEDULE)
        truck_id = self._validate(ScheduleOrderRequest, {"truck_id": truck_id}).truck_id

        # Row lock serializes concurrent schedules on the same truck
        truck = self.trucks.get_or_404(tenant.tenant_id, truck_id, for_update=True)
        if not truck.active:
            raise DomainError(
                "Cannot schedule order with inactive truck",
                order_id=order.id,
                truck_id=truck.id,
            )
        if order.fuel_liters > truck.tank_capacity_l:
            raise DomainError(
                f"Order requires {order.fuel_liters}L but truck capacity is only "
                f"{truck.tank_capacity_l}L",
                error_code=ErrorCode.CAPACITY_EXCEEDED,
                order_id=order.id,
                truck_id=truck.id,
            )
        if order.window_start is None or order.window_end is None:
            raise DomainError(
                "Order must have a delivery window to be scheduled", order_id=order.id
            )

        availability = self.availability.check_availability(
            tenant, truck.id, order.window_start, order.window_end, exclude_order_id=order.id
        )
        if not availability.available:
            raise DomainError(
                "Truck has conflicting orders in this time window",
                error_code=ErrorCode.CONFLICT,
                status_code=409,
                order_id=order.id,
                truck_id=truck.id,
                conflicting_order_ids=availability.conflicting_order_ids,
            )

        return self._transition(
            tenant,
            actor,
            order,
            OrderStatus.SCHEDULED,
            fields={"truck_id": truck.id},
            audit_data={"truck_id": truck.id, "truck_plate": truck.plate_no},
        )

    @operation()
    @transactional()
    @handle_service_errors()
    def dispatch_order(
        self, tenant: TenantContext, actor: Actor, order_id: str, driver_id: str
    ) -> OrderRead:
        order = self._load(tenant, order_id, for_update=True)
        ensure_authorized(actor, PolicyAction.DISPATCH, ResourceType.ORDER, order, tenant=tenant)
        self._require_status(order, PolicyAction.DISPATCH)
        driver_id = self._validate(DispatchOrderRequest, {"driver_id": driver_id}).driver_id

        if not order.truck_id:
            raise DomainError(
                "Order must have a truck assigned to be dispatched", order_id=order.id
            )
        driver = self.users.get_or_404(tenant.tenant_id, driver_id)

        return self._transition(
            tenant,
            actor,
            order,
            OrderStatus.EN_ROUTE,
            fields={"driver_id": driver.id},
            audit_data={"driver_id": driver.id},
        )

    @operation()
    @transactional()
    @handle_service_errors()
    def deliver_order(
        self, tenant: TenantContext, actor: Actor, order_id: str, delivered_liters: int
    ) -> OrderRead:
        """
        Complete an EN_ROUTE order.

        The delivered volume must be positive and may exceed the ordered
        volume by at most the configured tolerance (10% by default).
        """
        order = self._load(tenant, order_id, for_update=True)
        ensure_authorized(actor, PolicyAction.DELIVER, ResourceType.ORDER, order, tenant=tenant)
        self._require_status(order, PolicyAction.DELIVER)
        delivered_liters = self._validate(
            DeliverOrderRequest, {"delivered_liters": delivered_liters}
        ).delivered_liters

        if delivered_liters <= 0:
            raise DomainError(
                "Delivered liters must be greater than 0",
                order_id=order.id,
                delivered_liters=delivered_liters,
            )
        tolerance = get_config().orders.over_delivery_tolerance_percent
        if delivered_liters * 100 > order.fuel_liters * (100 + tolerance):
            raise DomainError(
                f"Delivered liters cannot exceed ordered amount by more than {tolerance}%",
                order_id=order.id,
                fuel_liters=order.fuel_liters,
                delivered_liters=delivered_liters,
            )

        delivered_at = utc_now()
        return self._transition(
            tenant,
            actor,
            order,
            OrderStatus.DELIVERED,
            fields={"delivered_liters": delivered_liters, "delivered_at": delivered_at},
            audit_data={
                "delivered_liters": delivered_liters,
                "delivered_at": delivered_at.isoformat(),
            },
        )

    @operation()
    @transactional()
    @handle_service_errors()
    def cancel_order(
        self, tenant: TenantContext, actor: Actor, order_id: str, reason: Optional[str] = None
    ) -> OrderRead:
        order = self._load(tenant, order_id, for_update=True)
        ensure_authorized(actor, PolicyAction.CANCEL, ResourceType.ORDER, order, tenant=tenant)

        current = OrderStatus(order.status)
        if current.is_terminal:
            raise DomainError(
                "Cannot cancel a delivered order"
                if current == OrderStatus.DELIVERED
                else "Order is already cancelled",
                error_code=ErrorCode.INVALID_STATE_TRANSITION,
                status_code=409,
                order_id=order.id,
            )
        reason = self._validate(CancelOrderRequest, {"reason": reason}).reason

        fields: Dict[str, Any] = {}
        audit_data: Dict[str, Any] = {}
        if reason:
            fields["cancellation_reason"] = reason
            audit_data["cancellation_reason"] = reason
        return self._transition(
            tenant, actor, order, OrderStatus.CANCELLED, fields=fields, audit_data=audit_data
        )

    # ==================== READS ====================

    @operation()
    def get_order(self, tenant: TenantContext, actor: Actor, order_id: str) -> OrderRead:
        """Drivers may only view orders assigned to them."""
        order = self._load(tenant, order_id)
        ensure_authorized(actor, PolicyAction.VIEW, ResourceType.ORDER, order, tenant=tenant)
        return self._to_read(OrderRead, order)

    @operation()
    def list_orders(
        self,
        tenant: TenantContext,
        actor: Actor,
        filters: Union[OrderFilter, Mapping[str, Any], None] = None,
    ) -> List[OrderRead]:
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.ORDER, tenant=tenant)
        filters = self._validate(OrderFilter, filters or {})
        return self._to_reads(OrderRead, self.repository.search(tenant.tenant_id, filters))

    @operation()
    def get_orders_by_truck(
        self, tenant: TenantContext, actor: Actor, truck_id: str
    ) -> List[OrderRead]:
        self.trucks.get_or_404(tenant.tenant_id, truck_id)
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.ORDER, tenant=tenant)
        return self._to_reads(OrderRead, self.repository.get_by_truck(tenant.tenant_id, truck_id))

    @operation()
    def get_orders_by_driver(
        self, tenant: TenantContext, actor: Actor, driver_id: str
    ) -> List[OrderRead]:
        self.users.get_or_404(tenant.tenant_id, driver_id)
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.ORDER, tenant=tenant)
        return self._to_reads(OrderRead, self.repository.get_by_driver(tenant.tenant_id, driver_id))
