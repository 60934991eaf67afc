"""
Tenant model.

Tenants are created by an operator or seed process and are not mutated
by the core.
"""

from sqlalchemy import Boolean, Column, String

from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class Tenant(Base, UUIDMixin, TimestampMixin):
    """A fuel distributor; owns every other row through tenant_id."""

    __tablename__ = "tenant"

    name = Column(String(200), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Tenant(id='{self.id}', slug='{self.slug}')>"
