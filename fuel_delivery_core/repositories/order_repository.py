"""
Repository for fuel orders.

Holds the conflict query behind truck scheduling: an existing SCHEDULED or
EN_ROUTE order on the same truck conflicts with a candidate window when
``existing.start < candidate.end AND existing.end > candidate.start``.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select

from ..db.db_order_models import Order
from ..enums import ACTIVE_TRUCK_STATUSES, OrderStatus
from ..schemas.order_schema import OrderFilter
from .base_repository import TenantScopedRepository


class OrderRepository(TenantScopedRepository[Order]):
    def __init__(self, session, logger=None):
        super().__init__(session, Order, logger)

    def find_conflicting_orders(
        self,
        tenant_id: str,
        truck_id: str,
        window_start: datetime,
        window_end: datetime,
        exclude_order_id: Optional[str] = None,
    ) -> List[Order]:
        """
        Active orders on the truck whose window overlaps [window_start, window_end).

        Windows that only touch at an endpoint do not overlap.
        """
        criteria = [
            Order.truck_id == truck_id,
            Order.status.in_(sorted(ACTIVE_TRUCK_STATUSES)),
            Order.window_start.is_not(None),
            Order.window_end.is_not(None),
            Order.window_start < window_end,
            Order.window_end > window_start,
        ]
        if exclude_order_id:
            criteria.append(Order.id != exclude_order_id)
        with self._session_operation("find_conflicting_orders", truck_id, is_read_only=True) as session:
            query = self._scoped(tenant_id, *criteria).order_by(Order.window_start, Order.id)
            return list(session.execute(query).scalars().all())

    def search(self, tenant_id: str, filters: OrderFilter) -> List[Order]:
        criteria = []
        if filters.status:
            criteria.append(Order.status.in_(filters.status))
        if filters.client_id:
            criteria.append(Order.client_id == filters.client_id)
        if filters.location_id:
            criteria.append(Order.location_id == filters.location_id)
        if filters.truck_id:
            criteria.append(Order.truck_id == filters.truck_id)
        if filters.driver_id:
            criteria.append(Order.driver_id == filters.driver_id)
        if filters.created_after:
            criteria.append(Order.created_at >= filters.created_after)
        if filters.created_before:
            criteria.append(Order.created_at <= filters.created_before)
        return self.list(tenant_id, *criteria, limit=filters.limit, offset=filters.offset)

    def get_by_truck(self, tenant_id: str, truck_id: str) -> List[Order]:
        return self.list(
            tenant_id, Order.truck_id == truck_id, limit=1000, sort_by="window_start", sort_direction="asc"
        )

    def get_by_driver(self, tenant_id: str, driver_id: str) -> List[Order]:
        return self.list(
            tenant_id, Order.driver_id == driver_id, limit=1000, sort_by="window_start", sort_direction="asc"
        )

    def trucks_in_use(self, tenant_id: str) -> List[str]:
        """Distinct trucks currently holding a SCHEDULED or EN_ROUTE order."""
        with self._session_operation("trucks_in_use", is_read_only=True) as session:
            query = (
                select(Order.truck_id)
                .where(
                    Order.tenant_id == tenant_id,
                    Order.truck_id.is_not(None),
                    Order.status.in_(sorted(ACTIVE_TRUCK_STATUSES)),
                )
                .distinct()
            )
            return [row[0] for row in session.execute(query).all()]

    def active_fuel_liters(self, tenant_id: str) -> int:
        with self._session_operation("active_fuel_liters", is_read_only=True) as session:
            query = select(func.coalesce(func.sum(Order.fuel_liters), 0)).where(
                Order.tenant_id == tenant_id, Order.status.in_(sorted(ACTIVE_TRUCK_STATUSES))
            )
            return int(session.execute(query).scalar_one())

    def count_by_status_since(self, tenant_id: str, since: datetime) -> Dict[OrderStatus, int]:
        with self._session_operation("count_by_status_since", is_read_only=True) as session:
            query = (
                select(Order.status, func.count(Order.id))
                .where(Order.tenant_id == tenant_id, Order.created_at >= since)
                .group_by(Order.status)
            )
            return {OrderStatus(status): int(count) for status, count in session.execute(query).all()}

    def get_recent(self, tenant_id: str, limit: int = 10) -> List[Order]:
        return self.list(tenant_id, limit=limit, sort_by="updated_at", sort_direction="desc")
