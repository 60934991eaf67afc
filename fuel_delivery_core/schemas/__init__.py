"""
Pydantic schemas for the fuel delivery core.
"""

from .activity_log_schema import ActivityLogFilter, ActivityLogRead
from .client_schema import ClientCreate, ClientFilter, ClientRead, ClientUpdate
from .dashboard_schema import FleetStatistics, OrderStatistics, RecentActivity
from .location_schema import LocationCreate, LocationFilter, LocationRead, LocationUpdate
from .mixins import CoreEntityMixin, DateRangeFilterMixin, IdMixin, TenantMixin, TimestampMixin
from .order_schema import (
    AvailabilityResult,
    CancelOrderRequest,
    DeliverOrderRequest,
    DispatchOrderRequest,
    OrderCreate,
    OrderFilter,
    OrderRead,
    OrderUpdate,
    ScheduleOrderRequest,
)
from .tenant_schema import TenantCreate, TenantRead
from .truck_schema import TruckCreate, TruckFilter, TruckRead, TruckUpdate
from .user_schema import Actor, UserCreate, UserRead

__all__ = [
    # Mixins
    "CoreEntityMixin",
    "DateRangeFilterMixin",
    "IdMixin",
    "TenantMixin",
    "TimestampMixin",
    # Tenants and users
    "Actor",
    "TenantCreate",
    "TenantRead",
    "UserCreate",
    "UserRead",
    # Entity store
    "ClientCreate",
    "ClientFilter",
    "ClientRead",
    "ClientUpdate",
    "LocationCreate",
    "LocationFilter",
    "LocationRead",
    "LocationUpdate",
    "TruckCreate",
    "TruckFilter",
    "TruckRead",
    "TruckUpdate",
    # Orders
    "AvailabilityResult",
    "CancelOrderRequest",
    "DeliverOrderRequest",
    "DispatchOrderRequest",
    "OrderCreate",
    "OrderFilter",
    "OrderRead",
    "OrderUpdate",
    "ScheduleOrderRequest",
    # Activity log and dashboard
    "ActivityLogFilter",
    "ActivityLogRead",
    "FleetStatistics",
    "OrderStatistics",
    "RecentActivity",
]
