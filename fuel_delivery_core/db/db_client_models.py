from sqlalchemy import Column, ForeignKey, Index, String, UniqueConstraint

from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class Client(Base, UUIDMixin, TimestampMixin):
    """A customer of the tenant that receives fuel at one or more locations."""

    __tablename__ = "client"

    tenant_id = Column(String(36), ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    name = Column(String(200), nullable=False)
    contact_person = Column(String(200), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    contact_email = Column(String(200), nullable=True)

    __table_args__ = (
        # Target of the composite (client_id, tenant_id) foreign keys
        UniqueConstraint("id", "tenant_id", name="uq_client_id_tenant"),
        Index("ix_client_tenant", "tenant_id"),
        Index("ix_client_tenant_name", "tenant_id", "name"),
    )

    def __repr__(self) -> str:
        return f"<Client(id='{self.id}', tenant_id='{self.tenant_id}', name='{self.name}')>"
