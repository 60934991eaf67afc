"""
Tenant context for the fuel delivery core.

A TenantContext is resolved once per inbound operation (see
TenantService.resolve_context) and then passed explicitly into every
service call. There is no ambient "current tenant": a function that touches
tenant data says so in its signature.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import not_found


class TenantContext(BaseModel):
    """Immutable description of the tenant an operation runs for."""

    tenant_id: str = Field(min_length=1, max_length=36)
    slug: str = Field(min_length=1, max_length=100)
    name: str = ""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_tenant(cls, tenant: Any) -> "TenantContext":
        """Build a context from a Tenant row or TenantRead schema."""
        return cls(tenant_id=tenant.id, slug=tenant.slug, name=tenant.name)

    def owns(self, entity: Any) -> bool:
        return getattr(entity, "tenant_id", None) == self.tenant_id

    def ensure_owns(self, entity: Any, resource_type: str, entity_id: str) -> Any:
        """
        Return the entity if it belongs to this tenant.

        Rows of another tenant are reported as missing, never as forbidden.
        """
        if entity is None or not self.owns(entity):
            raise not_found(resource_type, id=entity_id)
        return entity

    def log_context(self) -> dict:
        return {"tenant_id": self.tenant_id, "tenant_slug": self.slug}
