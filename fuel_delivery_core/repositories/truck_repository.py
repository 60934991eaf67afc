"""Repository for delivery trucks."""

from typing import List, Optional

from sqlalchemy import func, select

from ..db.db_order_models import Order
from ..db.db_truck_models import DeliveryTruck
from .base_repository import TenantScopedRepository


class TruckRepository(TenantScopedRepository[DeliveryTruck]):
    def __init__(self, session, logger=None):
        super().__init__(session, DeliveryTruck, logger)

    def get_by_plate(self, tenant_id: str, plate_no: str) -> Optional[DeliveryTruck]:
        with self._session_operation("get_by_plate", is_read_only=True) as session:
            query = self._scoped(tenant_id, DeliveryTruck.plate_no == plate_no)
            return session.execute(query).scalar_one_or_none()

    def list_trucks(
        self, tenant_id: str, active_only: bool = False, limit: int = 100, offset: int = 0
    ) -> List[DeliveryTruck]:
        criteria = [DeliveryTruck.active.is_(True)] if active_only else []
        return self.list(
            tenant_id, *criteria, limit=limit, offset=offset, sort_by="plate_no", sort_direction="asc"
        )

    def count_orders(self, tenant_id: str, truck_id: str) -> int:
        with self._session_operation("count_orders", truck_id, is_read_only=True) as session:
            query = select(func.count(Order.id)).where(
                Order.tenant_id == tenant_id, Order.truck_id == truck_id
            )
            return int(session.execute(query).scalar_one())

    def capacity_totals(self, tenant_id: str) -> dict:
        """Truck counts and summed capacity of the active fleet."""
        with self._session_operation("capacity_totals", is_read_only=True) as session:
            total = session.execute(
                select(func.count(DeliveryTruck.id)).where(DeliveryTruck.tenant_id == tenant_id)
            ).scalar_one()
            active, capacity = session.execute(
                select(
                    func.count(DeliveryTruck.id),
                    func.coalesce(func.sum(DeliveryTruck.tank_capacity_l), 0),
                ).where(DeliveryTruck.tenant_id == tenant_id, DeliveryTruck.active.is_(True))
            ).one()
            return {"total": int(total), "active": int(active), "capacity": int(capacity)}
