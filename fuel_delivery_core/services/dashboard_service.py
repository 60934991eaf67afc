"""
Tenant dashboard figures: order counts by status, fleet utilisation and
recently touched orders.
"""

from datetime import datetime, timedelta
from typing import Optional, Union

from ..constants import DashboardPeriod
from ..context.operation_context import operation
from ..context.tenant_context import TenantContext
from ..enums import OrderStatus, PolicyAction, ResourceType
from ..policies.access_policy import ensure_authorized
from ..repositories.order_repository import OrderRepository
from ..repositories.truck_repository import TruckRepository
from ..schemas.dashboard_schema import FleetStatistics, OrderStatistics, RecentActivity
from ..schemas.order_schema import OrderRead
from ..schemas.user_schema import Actor
from ..utils.time_utils import utc_now
from .base_service import SessionManagedService


def period_start(period: DashboardPeriod, now: Optional[datetime] = None) -> datetime:
    """Start of the reporting period in UTC. Weeks start on Monday."""
    now = now or utc_now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == DashboardPeriod.WEEK:
        return today - timedelta(days=today.weekday())
    if period == DashboardPeriod.MONTH:
        return today.replace(day=1)
    return today


class DashboardService(SessionManagedService):
    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.orders = OrderRepository(self.session, self.logger)
        self.trucks = TruckRepository(self.session, self.logger)

    @operation()
    def order_statistics(
        self,
        tenant: TenantContext,
        actor: Actor,
        period: Union[DashboardPeriod, str] = DashboardPeriod.TODAY,
        now: Optional[datetime] = None,
    ) -> OrderStatistics:
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.ORDER, tenant=tenant)
        period = DashboardPeriod(period)
        date_from = period_start(period, now)

        counts = self.orders.count_by_status_since(tenant.tenant_id, date_from)
        by_status = {status.value: counts.get(status, 0) for status in OrderStatus}
        return OrderStatistics(
            period=period,
            date_from=date_from,
            total=sum(by_status.values()),
            by_status=by_status,
        )

    @operation()
    def fleet_statistics(self, tenant: TenantContext, actor: Actor) -> FleetStatistics:
        """Utilisation is the fuel of active orders against the active fleet's capacity."""
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.TRUCK, tenant=tenant)
        totals = self.trucks.capacity_totals(tenant.tenant_id)
        used = self.orders.active_fuel_liters(tenant.tenant_id)
        capacity = totals["capacity"]
        return FleetStatistics(
            total_trucks=totals["total"],
            active_trucks=totals["active"],
            trucks_in_use=len(self.orders.trucks_in_use(tenant.tenant_id)),
            total_capacity_l=capacity,
            used_capacity_l=used,
            utilization_percent=round(used / capacity * 100, 2) if capacity > 0 else 0.0,
        )

    @operation()
    def recent_activity(self, tenant: TenantContext, actor: Actor, limit: int = 10) -> RecentActivity:
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.ORDER, tenant=tenant)
        orders = self.orders.get_recent(tenant.tenant_id, limit)
        return RecentActivity(orders=self._to_reads(OrderRead, orders))
