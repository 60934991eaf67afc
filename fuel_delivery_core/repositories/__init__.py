"""Tenant-scoped data access for the fuel delivery core."""

from .activity_log_repository import ActivityLogRepository
from .base_repository import BaseRepository, TenantScopedRepository
from .client_repository import ClientRepository
from .location_repository import LocationRepository
from .order_repository import OrderRepository
from .tenant_repository import TenantRepository
from .truck_repository import TruckRepository
from .user_repository import UserRepository

__all__ = [
    "ActivityLogRepository",
    "BaseRepository",
    "ClientRepository",
    "LocationRepository",
    "OrderRepository",
    "TenantRepository",
    "TenantScopedRepository",
    "TruckRepository",
    "UserRepository",
]
