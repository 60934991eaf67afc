"""
Truck fleet management.

Trucks with order history cannot be deleted; deactivating them with
``toggle_active`` keeps the history intact and takes them out of scheduling.
"""

from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from ..context.operation_context import operation
from ..context.service_decorators import handle_service_errors, transactional
from ..context.tenant_context import TenantContext
from ..enums import PolicyAction, ResourceType
from ..exceptions import DomainError, ErrorCode, duplicate
from ..policies.access_policy import ensure_authorized
from ..repositories.truck_repository import TruckRepository
from ..schemas.truck_schema import TruckCreate, TruckFilter, TruckRead, TruckUpdate
from ..schemas.user_schema import Actor
from .activity_log_service import (
    AuditRecorder,
    bind_recorder,
    entity_snapshot,
    record_created,
    record_deleted,
    record_updated,
)
from .availability_service import AvailabilityService
from .base_service import SessionManagedService


class TruckService(SessionManagedService):
    def __init__(self, session=None, logger=None, audit: Optional[AuditRecorder] = None):
        super().__init__(session=session, logger=logger)
        self.repository = TruckRepository(self.session, self.logger)
        self.availability = AvailabilityService(session=self.session, logger=self.logger)
        self.audit = bind_recorder(self.session, audit, self.logger)

    def _ensure_plate_free(self, tenant: TenantContext, plate_no: str) -> None:
        if self.repository.get_by_plate(tenant.tenant_id, plate_no) is not None:
            raise duplicate("DeliveryTruck", plate_no=plate_no)

    @operation()
    @transactional()
    @handle_service_errors()
    def create_truck(
        self,
        tenant: TenantContext,
        actor: Actor,
        truck_data: Union[TruckCreate, Mapping[str, Any]],
    ) -> TruckRead:
        """
        Register a truck.

        Raises:
            DomainError: If the plate number is already used in this tenant
        """
        ensure_authorized(actor, PolicyAction.CREATE, ResourceType.TRUCK, tenant=tenant)
        truck_data = self._validate(TruckCreate, truck_data)
        self._ensure_plate_free(tenant, truck_data.plate_no)

        truck = self.repository.add(tenant.tenant_id, **truck_data.model_dump())
        record_created(self.audit, tenant, actor, ResourceType.TRUCK, truck)
        return self._to_read(TruckRead, truck)

    @operation()
    def get_truck(self, tenant: TenantContext, actor: Actor, truck_id: str) -> TruckRead:
        truck = self.repository.get_or_404(tenant.tenant_id, truck_id)
        ensure_authorized(actor, PolicyAction.VIEW, ResourceType.TRUCK, truck, tenant=tenant)
        return self._to_read(TruckRead, truck)

    @operation()
    def list_trucks(
        self,
        tenant: TenantContext,
        actor: Actor,
        filters: Union[TruckFilter, Mapping[str, Any], None] = None,
    ) -> List[TruckRead]:
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.TRUCK, tenant=tenant)
        filters = self._validate(TruckFilter, filters or {})
        trucks = self.repository.list_trucks(
            tenant.tenant_id, filters.active_only, filters.limit, filters.offset
        )
        return self._to_reads(TruckRead, trucks)

    @operation()
    @transactional()
    @handle_service_errors()
    def update_truck(
        self,
        tenant: TenantContext,
        actor: Actor,
        truck_id: str,
        changes: Union[TruckUpdate, Mapping[str, Any]],
    ) -> TruckRead:
        truck = self.repository.get_or_404(tenant.tenant_id, truck_id)
        ensure_authorized(actor, PolicyAction.UPDATE, ResourceType.TRUCK, truck, tenant=tenant)
        changes = self._validate(TruckUpdate, changes)
        fields = {k: v for k, v in changes.model_dump(exclude_unset=True).items() if v is not None}

        if "plate_no" in fields and fields["plate_no"] != truck.plate_no:
            self._ensure_plate_free(tenant, fields["plate_no"])

        before = entity_snapshot(truck)
        self.repository.update(tenant.tenant_id, truck, fields)
        record_updated(self.audit, tenant, actor, ResourceType.TRUCK, truck, before)
        return self._to_read(TruckRead, truck)

    @operation()
    @transactional()
    @handle_service_errors()
    def delete_truck(self, tenant: TenantContext, actor: Actor, truck_id: str) -> None:
        truck = self.repository.get_or_404(tenant.tenant_id, truck_id)
        ensure_authorized(actor, PolicyAction.DELETE, ResourceType.TRUCK, truck, tenant=tenant)

        if self.repository.count_orders(tenant.tenant_id, truck_id) > 0:
            raise DomainError(
                "Cannot delete truck with existing orders. Set as inactive instead.",
                error_code=ErrorCode.PRECONDITION_FAILED,
                truck_id=truck_id,
            )

        record_deleted(self.audit, tenant, actor, ResourceType.TRUCK, truck)
        self.repository.delete(tenant.tenant_id, truck)

    @operation()
    @transactional()
    @handle_service_errors()
    def toggle_active(self, tenant: TenantContext, actor: Actor, truck_id: str) -> TruckRead:
        truck = self.repository.get_or_404(tenant.tenant_id, truck_id)
        ensure_authorized(actor, PolicyAction.TOGGLE_ACTIVE, ResourceType.TRUCK, truck, tenant=tenant)

        before = entity_snapshot(truck)
        self.repository.update(tenant.tenant_id, truck, {"active": not truck.active})
        record_updated(
            self.audit,
            tenant,
            actor,
            ResourceType.TRUCK,
            truck,
            before,
            description=f"Truck {truck.plate_no} {'activated' if truck.active else 'deactivated'}",
        )
        return self._to_read(TruckRead, truck)

    @operation()
    def is_truck_available(
        self,
        tenant: TenantContext,
        actor: Actor,
        truck_id: str,
        window_start: datetime,
        window_end: datetime,
        exclude_order_id: Optional[str] = None,
    ) -> bool:
        truck = self.repository.get_or_404(tenant.tenant_id, truck_id)
        ensure_authorized(actor, PolicyAction.VIEW, ResourceType.TRUCK, truck, tenant=tenant)
        result = self.availability.check_availability(
            tenant, truck_id, window_start, window_end, exclude_order_id
        )
        return result.available
