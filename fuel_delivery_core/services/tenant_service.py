"""
Tenant service: tenant creation and resolution of the per-request context.
"""

from typing import Any, Mapping, Union

from ..context.operation_context import operation
from ..context.service_decorators import handle_service_errors, transactional
from ..context.tenant_context import TenantContext
from ..exceptions import ErrorCode, ValidationError, duplicate, not_found
from ..repositories.tenant_repository import TenantRepository
from ..schemas.tenant_schema import TenantCreate, TenantRead
from .base_service import SessionManagedService


class TenantService(SessionManagedService):
    """
    Service for managing tenants.

    Tenants are created by an operator or seed process. Every other service
    receives the TenantContext built by ``resolve_context``.
    """

    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.repository = TenantRepository(self.session, self.logger)

    @operation()
    @transactional()
    @handle_service_errors()
    def create_tenant(self, tenant_data: Union[TenantCreate, Mapping[str, Any]]) -> TenantRead:
        """
        Create a new tenant.

        Raises:
            ValidationError: If the data is malformed
            DomainError: If the slug is already taken
        """
        tenant_data = self._validate(TenantCreate, tenant_data)
        if self.repository.get_by_slug(tenant_data.slug) is not None:
            raise duplicate("Tenant", slug=tenant_data.slug)

        tenant = self.repository.create(tenant_data)
        self.logger.info(
            f"Created tenant: {tenant.slug}",
            extra={"tenant_id": tenant.id, "tenant_slug": tenant.slug},
        )
        return self._to_read(TenantRead, tenant)

    @operation()
    def get_tenant(self, tenant_id: str) -> TenantRead:
        tenant = self.repository.get_by_id(tenant_id)
        if tenant is None:
            raise not_found("Tenant", tenant_id=tenant_id)
        return self._to_read(TenantRead, tenant)

    @operation()
    def resolve_context(self, slug: str) -> TenantContext:
        """
        Resolve the tenant named by a request path segment.

        Args:
            slug: Tenant slug as supplied by the caller

        Returns:
            Immutable TenantContext for the rest of the operation

        Raises:
            ValidationError: If the slug is missing or blank
            NotFoundError: If no active tenant has this slug
        """
        if slug is None or not str(slug).strip():
            raise ValidationError(
                "Tenant slug is required",
                field="slug",
                error_code=ErrorCode.MISSING_REQUIRED,
            )
        normalised = str(slug).strip().lower()
        tenant = self.repository.get_by_slug(normalised)
        if tenant is None or not tenant.is_active:
            raise not_found("Tenant", slug=normalised)
        return TenantContext.from_tenant(tenant)
