"""
Client management.
"""

from typing import Any, List, Mapping, Optional, Union

from ..context.operation_context import operation
from ..context.service_decorators import handle_service_errors, transactional
from ..context.tenant_context import TenantContext
from ..enums import PolicyAction, ResourceType
from ..exceptions import DomainError, ErrorCode
from ..policies.access_policy import ensure_authorized
from ..repositories.client_repository import ClientRepository
from ..schemas.client_schema import ClientCreate, ClientFilter, ClientRead, ClientUpdate
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


class ClientService(SessionManagedService):
    def __init__(self, session=None, logger=None, audit: Optional[AuditRecorder] = None):
        super().__init__(session=session, logger=logger)
        self.repository = ClientRepository(self.session, self.logger)
        self.audit = bind_recorder(self.session, audit, self.logger)

    def _read(self, tenant_id: str, client) -> ClientRead:
        read = self._to_read(ClientRead, client)
        return read.model_copy(
            update={"locations_count": self.repository.count_locations(tenant_id, client.id)}
        )

    @operation()
    @transactional()
    @handle_service_errors()
    def create_client(
        self,
        tenant: TenantContext,
        actor: Actor,
        client_data: Union[ClientCreate, Mapping[str, Any]],
    ) -> ClientRead:
        ensure_authorized(actor, PolicyAction.CREATE, ResourceType.CLIENT, tenant=tenant)
        client_data = self._validate(ClientCreate, client_data)

        client = self.repository.add(tenant.tenant_id, **client_data.model_dump())
        record_created(self.audit, tenant, actor, ResourceType.CLIENT, client)
        return self._read(tenant.tenant_id, client)

    @operation()
    def get_client(self, tenant: TenantContext, actor: Actor, client_id: str) -> ClientRead:
        client = self.repository.get_or_404(tenant.tenant_id, client_id)
        ensure_authorized(actor, PolicyAction.VIEW, ResourceType.CLIENT, client, tenant=tenant)
        return self._read(tenant.tenant_id, client)

    @operation()
    def list_clients(
        self,
        tenant: TenantContext,
        actor: Actor,
        filters: Union[ClientFilter, Mapping[str, Any], None] = None,
    ) -> List[ClientRead]:
        """List clients of the tenant, optionally searching name and contact fields."""
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.CLIENT, tenant=tenant)
        filters = self._validate(ClientFilter, filters or {})
        return [self._read(tenant.tenant_id, c) for c in self.repository.search(tenant.tenant_id, filters)]

    @operation()
    @transactional()
    @handle_service_errors()
    def update_client(
        self,
        tenant: TenantContext,
        actor: Actor,
        client_id: str,
        changes: Union[ClientUpdate, Mapping[str, Any]],
    ) -> ClientRead:
        client = self.repository.get_or_404(tenant.tenant_id, client_id)
        ensure_authorized(actor, PolicyAction.UPDATE, ResourceType.CLIENT, client, tenant=tenant)
        changes = self._validate(ClientUpdate, changes)

        before = entity_snapshot(client)
        fields = changes.model_dump(exclude_unset=True)
        if fields.get("name", "") is None:
            del fields["name"]
        self.repository.update(tenant.tenant_id, client, fields)
        record_updated(self.audit, tenant, actor, ResourceType.CLIENT, client, before)
        return self._read(tenant.tenant_id, client)

    @operation()
    @transactional()
    @handle_service_errors()
    def delete_client(self, tenant: TenantContext, actor: Actor, client_id: str) -> None:
        """
        Delete a client that owns no locations.

        Raises:
            DomainError: While the client still owns locations
        """
        client = self.repository.get_or_404(tenant.tenant_id, client_id)
        ensure_authorized(actor, PolicyAction.DELETE, ResourceType.CLIENT, client, tenant=tenant)

        if self.repository.count_locations(tenant.tenant_id, client_id) > 0:
            raise DomainError(
                "Cannot delete client with existing locations",
                error_code=ErrorCode.PRECONDITION_FAILED,
                client_id=client_id,
            )

        record_deleted(self.audit, tenant, actor, ResourceType.CLIENT, client)
        self.repository.delete(tenant.tenant_id, client)
