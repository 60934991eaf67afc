"""Services of the fuel delivery core."""

from .activity_log_service import ActivityLogService, AuditRecorder
from .availability_service import AvailabilityService, windows_overlap
from .base_service import SessionManagedService
from .client_service import ClientService
from .dashboard_service import DashboardService
from .location_service import LocationService
from .order_service import OrderService
from .tenant_service import TenantService
from .truck_service import TruckService
from .user_service import UserService

__all__ = [
    "ActivityLogService",
    "AuditRecorder",
    "AvailabilityService",
    "ClientService",
    "DashboardService",
    "LocationService",
    "OrderService",
    "SessionManagedService",
    "TenantService",
    "TruckService",
    "UserService",
    "windows_overlap",
]
