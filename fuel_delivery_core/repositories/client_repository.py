"""Repository for clients."""

from typing import List

from sqlalchemy import exists, func, or_, select

from ..db.db_client_models import Client
from ..db.db_location_models import Location
from ..schemas.client_schema import ClientFilter
from .base_repository import TenantScopedRepository


class ClientRepository(TenantScopedRepository[Client]):
    def __init__(self, session, logger=None):
        super().__init__(session, Client, logger)

    def _has_locations_clause(self):
        return exists(
            select(Location.id).where(
                Location.client_id == Client.id, Location.tenant_id == Client.tenant_id
            )
        )

    def search(self, tenant_id: str, filters: ClientFilter) -> List[Client]:
        """
        List clients, optionally matching a search term against the name and
        contact fields.
        """
        criteria = []
        if filters.search:
            term = f"%{filters.search.strip()}%"
            criteria.append(
                or_(
                    Client.name.ilike(term),
                    Client.contact_person.ilike(term),
                    Client.contact_email.ilike(term),
                    Client.contact_phone.ilike(term),
                )
            )
        if filters.has_locations is True:
            criteria.append(self._has_locations_clause())
        elif filters.has_locations is False:
            criteria.append(~self._has_locations_clause())
        return self.list(
            tenant_id,
            *criteria,
            limit=filters.limit,
            offset=filters.offset,
            sort_by="name",
            sort_direction="asc",
        )

    def count_locations(self, tenant_id: str, client_id: str) -> int:
        with self._session_operation("count_locations", client_id, is_read_only=True) as session:
            query = select(func.count(Location.id)).where(
                Location.tenant_id == tenant_id, Location.client_id == client_id
            )
            return int(session.execute(query).scalar_one())
