"""
Tenant user model.

Users are the actors of every mutation and the drivers assigned to orders.
Authentication is handled outside the core.
"""

from sqlalchemy import Column, Enum, ForeignKey, Index, String, UniqueConstraint

from ..enums import UserRole
from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class User(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "app_user"

    tenant_id = Column(String(36), ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=False)
    role = Column(
        Enum(
            UserRole,
            name="user_role",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("id", "tenant_id", name="uq_app_user_id_tenant"),
        UniqueConstraint("tenant_id", "email", name="uq_app_user_tenant_email"),
        Index("ix_app_user_tenant", "tenant_id"),
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', tenant_id='{self.tenant_id}', role='{self.role}')>"
