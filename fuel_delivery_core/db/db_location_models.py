from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)

from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class Location(Base, UUIDMixin, TimestampMixin):
    """
    A delivery address owned by a client.

    tenant_id is denormalised from the client; the composite foreign key keeps
    it equal to the owning client's tenant.
    """

    __tablename__ = "location"

    tenant_id = Column(String(36), ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    client_id = Column(String(36), nullable=False)
    address = Column(String(500), nullable=False)
    lat = Column(Numeric(10, 7, asdecimal=False), nullable=True)
    lng = Column(Numeric(10, 7, asdecimal=False), nullable=True)

    __table_args__ = (
        ForeignKeyConstraint(
            ["client_id", "tenant_id"],
            ["client.id", "client.tenant_id"],
            ondelete="RESTRICT",
            name="fk_location_client_tenant",
        ),
        UniqueConstraint("id", "tenant_id", name="uq_location_id_tenant"),
        CheckConstraint("lat IS NULL OR (lat >= -90 AND lat <= 90)", name="ck_location_lat"),
        CheckConstraint("lng IS NULL OR (lng >= -180 AND lng <= 180)", name="ck_location_lng"),
        Index("ix_location_tenant", "tenant_id"),
        Index("ix_location_client", "client_id"),
    )

    def __repr__(self) -> str:
        return f"<Location(id='{self.id}', client_id='{self.client_id}')>"
