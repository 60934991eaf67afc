from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)

from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class DeliveryTruck(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "delivery_truck"

    tenant_id = Column(String(36), ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    plate_no = Column(String(50), nullable=False)
    tank_capacity_l = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("plate_no", "tenant_id", name="uq_delivery_truck_plate_tenant"),
        UniqueConstraint("id", "tenant_id", name="uq_delivery_truck_id_tenant"),
        CheckConstraint("tank_capacity_l > 0", name="ck_delivery_truck_capacity"),
        Index("ix_delivery_truck_tenant", "tenant_id"),
    )

    def __repr__(self) -> str:
        return f"<DeliveryTruck(id='{self.id}', plate_no='{self.plate_no}', active={self.active})>"
