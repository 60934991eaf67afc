"""
Repository for Tenant data access operations.

Tenants are the scope of everything else, so this is the one repository
whose lookups are not themselves tenant-scoped.
"""

from typing import Optional

from sqlalchemy import select

from ..db.db_tenant_models import Tenant
from ..schemas.tenant_schema import TenantCreate
from .base_repository import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Repository for tenant data access operations."""

    def __init__(self, session, logger=None):
        super().__init__(session, Tenant, logger)

    def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        with self._session_operation("get_by_id", tenant_id, is_read_only=True) as session:
            return session.execute(select(Tenant).where(Tenant.id == tenant_id)).scalar_one_or_none()

    def get_by_slug(self, slug: str) -> Optional[Tenant]:
        with self._session_operation("get_by_slug", is_read_only=True) as session:
            return session.execute(select(Tenant).where(Tenant.slug == slug)).scalar_one_or_none()

    def create(self, tenant_data: TenantCreate) -> Tenant:
        with self._session_operation("create") as session:
            tenant = Tenant(
                name=tenant_data.name,
                slug=tenant_data.slug,
                is_active=tenant_data.is_active,
            )
            session.add(tenant)
        return tenant
