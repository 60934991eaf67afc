"""
Delivery location management.

A location belongs to exactly one client of the same tenant; the composite
foreign key on (client_id, tenant_id) backs this up in the database.
"""

from typing import Any, List, Mapping, Optional, Union

from ..context.operation_context import operation
from ..context.service_decorators import handle_service_errors, transactional
from ..context.tenant_context import TenantContext
from ..enums import PolicyAction, ResourceType
from ..exceptions import DomainError, ErrorCode
from ..policies.access_policy import ensure_authorized
from ..repositories.client_repository import ClientRepository
from ..repositories.location_repository import LocationRepository
from ..schemas.location_schema import LocationCreate, LocationFilter, LocationRead, LocationUpdate
from ..schemas.user_schema import Actor
from .activity_log_service import (
    AuditRecorder,
    bind_recorder,
    entity_snapshot,
    record_created,
    record_deleted,
    record_updated,
)
from .base_service import SessionManagedService


class LocationService(SessionManagedService):
    def __init__(self, session=None, logger=None, audit: Optional[AuditRecorder] = None):
        super().__init__(session=session, logger=logger)
        self.repository = LocationRepository(self.session, self.logger)
        self.clients = ClientRepository(self.session, self.logger)
        self.audit = bind_recorder(self.session, audit, self.logger)

    @operation()
    @transactional()
    @handle_service_errors()
    def create_location(
        self,
        tenant: TenantContext,
        actor: Actor,
        location_data: Union[LocationCreate, Mapping[str, Any]],
    ) -> LocationRead:
        """
        Create a location under a client of this tenant.

        Raises:
            NotFoundError: If the client does not exist in this tenant
        """
        ensure_authorized(actor, PolicyAction.CREATE, ResourceType.LOCATION, tenant=tenant)
        location_data = self._validate(LocationCreate, location_data)
        self.clients.get_or_404(tenant.tenant_id, location_data.client_id)

        location = self.repository.add(tenant.tenant_id, **location_data.model_dump())
        record_created(self.audit, tenant, actor, ResourceType.LOCATION, location)
        return self._to_read(LocationRead, location)

    @operation()
    def get_location(self, tenant: TenantContext, actor: Actor, location_id: str) -> LocationRead:
        location = self.repository.get_or_404(tenant.tenant_id, location_id)
        ensure_authorized(actor, PolicyAction.VIEW, ResourceType.LOCATION, location, tenant=tenant)
        return self._to_read(LocationRead, location)

    @operation()
    def list_locations(
        self,
        tenant: TenantContext,
        actor: Actor,
        filters: Union[LocationFilter, Mapping[str, Any], None] = None,
    ) -> List[LocationRead]:
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.LOCATION, tenant=tenant)
        filters = self._validate(LocationFilter, filters or {})
        return self._to_reads(LocationRead, self.repository.search(tenant.tenant_id, filters))

    @operation()
    @transactional()
    @handle_service_errors()
    def update_location(
        self,
        tenant: TenantContext,
        actor: Actor,
        location_id: str,
        changes: Union[LocationUpdate, Mapping[str, Any]],
    ) -> LocationRead:
        location = self.repository.get_or_404(tenant.tenant_id, location_id)
        ensure_authorized(actor, PolicyAction.UPDATE, ResourceType.LOCATION, location, tenant=tenant)
        changes = self._validate(LocationUpdate, changes)
        # Only coordinates may be cleared
        fields = {
            k: v
            for k, v in changes.model_dump(exclude_unset=True).items()
            if v is not None or k in ("lat", "lng")
        }

        if "client_id" in fields and fields["client_id"] != location.client_id:
            self.clients.get_or_404(tenant.tenant_id, fields["client_id"])
            # Orders carry the client of their location
            if self.repository.count_orders(tenant.tenant_id, location_id) > 0:
                raise DomainError(
                    "Cannot move location with existing orders to another client",
                    error_code=ErrorCode.PRECONDITION_FAILED,
                    location_id=location_id,
                    client_id=fields["client_id"],
                )

        before = entity_snapshot(location)
        self.repository.update(tenant.tenant_id, location, fields)
        record_updated(self.audit, tenant, actor, ResourceType.LOCATION, location, before)
        return self._to_read(LocationRead, location)

    @operation()
    @transactional()
    @handle_service_errors()
    def delete_location(self, tenant: TenantContext, actor: Actor, location_id: str) -> None:
        """
        Delete a location that no order references.

        Raises:
            DomainError: While orders reference the location
        """
        location = self.repository.get_or_404(tenant.tenant_id, location_id)
        ensure_authorized(actor, PolicyAction.DELETE, ResourceType.LOCATION, location, tenant=tenant)

        if self.repository.count_orders(tenant.tenant_id, location_id) > 0:
            raise DomainError(
                "Cannot delete location with existing orders",
                error_code=ErrorCode.PRECONDITION_FAILED,
                location_id=location_id,
            )

        record_deleted(self.audit, tenant, actor, ResourceType.LOCATION, location)
        self.repository.delete(tenant.tenant_id, location)

    def location_belongs_to_client(
        self, tenant: TenantContext, location_id: str, client_id: str
    ) -> bool:
        return self.repository.belongs_to_client(tenant.tenant_id, location_id, client_id)
