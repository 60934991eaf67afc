"""Repository for delivery locations."""

from typing import List

from sqlalchemy import func, select

from ..db.db_location_models import Location
from ..db.db_order_models import Order
from ..schemas.location_schema import LocationFilter
from .base_repository import TenantScopedRepository


class LocationRepository(TenantScopedRepository[Location]):
    def __init__(self, session, logger=None):
        super().__init__(session, Location, logger)

    def search(self, tenant_id: str, filters: LocationFilter) -> List[Location]:
        criteria = []
        if filters.client_id:
            criteria.append(Location.client_id == filters.client_id)
        if filters.search:
            criteria.append(Location.address.ilike(f"%{filters.search.strip()}%"))
        return self.list(
            tenant_id,
            *criteria,
            limit=filters.limit,
            offset=filters.offset,
            sort_by="address",
            sort_direction="asc",
        )

    def belongs_to_client(self, tenant_id: str, location_id: str, client_id: str) -> bool:
        return self.exists(tenant_id, Location.id == location_id, Location.client_id == client_id)

    def count_orders(self, tenant_id: str, location_id: str) -> int:
        with self._session_operation("count_orders", location_id, is_read_only=True) as session:
            query = select(func.count(Order.id)).where(
                Order.tenant_id == tenant_id, Order.location_id == location_id
            )
            return int(session.execute(query).scalar_one())
