"""
Order model.

Rows are mutated only through the order lifecycle service. Every reference
(client, location, truck, creator, driver) is a composite foreign key that
includes tenant_id, so an order can never point at another tenant's rows.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
)

from ..enums import OrderStatus
from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class Order(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "fuel_order"

    tenant_id = Column(String(36), ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    client_id = Column(String(36), nullable=False)
    location_id = Column(String(36), nullable=False)
    truck_id = Column(String(36), nullable=True)
    created_by = Column(String(36), nullable=False)
    driver_id = Column(String(36), nullable=True)

    fuel_liters = Column(Integer, nullable=False)
    status = Column(
        Enum(
            OrderStatus,
            name="order_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
        default=OrderStatus.DRAFT,
    )
    window_start = Column(DateTime(timezone=True), nullable=True)
    window_end = Column(DateTime(timezone=True), nullable=True)
    delivered_liters = Column(Integer, nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    __table_args__ = (
        ForeignKeyConstraint(
            ["client_id", "tenant_id"],
            ["client.id", "client.tenant_id"],
            ondelete="RESTRICT",
            name="fk_fuel_order_client_tenant",
        ),
        ForeignKeyConstraint(
            ["location_id", "tenant_id"],
            ["location.id", "location.tenant_id"],
            ondelete="RESTRICT",
            name="fk_fuel_order_location_tenant",
        ),
        ForeignKeyConstraint(
            ["truck_id", "tenant_id"],
            ["delivery_truck.id", "delivery_truck.tenant_id"],
            ondelete="RESTRICT",
            name="fk_fuel_order_truck_tenant",
        ),
        ForeignKeyConstraint(
            ["created_by", "tenant_id"],
            ["app_user.id", "app_user.tenant_id"],
            ondelete="RESTRICT",
            name="fk_fuel_order_creator_tenant",
        ),
        ForeignKeyConstraint(
            ["driver_id", "tenant_id"],
            ["app_user.id", "app_user.tenant_id"],
            ondelete="RESTRICT",
            name="fk_fuel_order_driver_tenant",
        ),
        CheckConstraint("fuel_liters > 0", name="ck_fuel_order_fuel_liters"),
        CheckConstraint(
            "window_start IS NULL OR window_end IS NULL OR window_end > window_start",
            name="ck_fuel_order_window",
        ),
        Index("ix_fuel_order_tenant", "tenant_id"),
        Index("ix_fuel_order_tenant_status", "tenant_id", "status"),
        Index("ix_fuel_order_client", "client_id"),
        Index("ix_fuel_order_location", "location_id"),
        Index("ix_fuel_order_truck_window", "truck_id", "window_start", "window_end"),
        Index("ix_fuel_order_driver", "driver_id"),
    )

    def __repr__(self) -> str:
        return f"<Order(id='{self.id}', tenant_id='{self.tenant_id}', status='{self.status}')>"
