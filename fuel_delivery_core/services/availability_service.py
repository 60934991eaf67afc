"""
Truck availability checks.

An order holds its truck for [window_start, window_end) while it is
SCHEDULED or EN_ROUTE. Two windows conflict when each starts before the
other ends, so back-to-back windows do not conflict.
"""

from datetime import datetime
from typing import Optional

from ..context.operation_context import operation
from ..context.tenant_context import TenantContext
from ..repositories.order_repository import OrderRepository
from ..repositories.truck_repository import TruckRepository
from ..schemas.mixins import require_window_order
from ..schemas.order_schema import AvailabilityResult
from ..utils.time_utils import ensure_utc
from .base_service import SessionManagedService


def windows_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open interval overlap of [start_a, end_a) and [start_b, end_b)."""
    return ensure_utc(start_a) < ensure_utc(end_b) and ensure_utc(end_a) > ensure_utc(start_b)


class AvailabilityService(SessionManagedService):
    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.orders = OrderRepository(self.session, self.logger)
        self.trucks = TruckRepository(self.session, self.logger)

    @operation()
    def check_availability(
        self,
        tenant: TenantContext,
        truck_id: str,
        window_start: datetime,
        window_end: datetime,
        exclude_order_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Find active orders on the truck that overlap the candidate window.

        Args:
            tenant: Tenant the truck must belong to
            truck_id: Truck to check
            window_start: Candidate window start
            window_end: Candidate window end, strictly after the start
            exclude_order_id: Order to leave out, typically the one being scheduled

        Raises:
            ValidationError: If the window is empty or reversed
            NotFoundError: If the truck does not exist in this tenant
        """
        window_start, window_end = ensure_utc(window_start), ensure_utc(window_end)
        require_window_order(window_start, window_end)
        self.trucks.get_or_404(tenant.tenant_id, truck_id)

        conflicts = self.orders.find_conflicting_orders(
            tenant.tenant_id, truck_id, window_start, window_end, exclude_order_id
        )
        result = AvailabilityResult(
            available=not conflicts,
            conflicting_order_ids=[order.id for order in conflicts],
        )
        self.logger.debug(
            "Availability checked",
            extra={
                "tenant_id": tenant.tenant_id,
                "truck_id": truck_id,
                "available": result.available,
                "conflicts": len(result.conflicting_order_ids),
            },
        )
        return result
