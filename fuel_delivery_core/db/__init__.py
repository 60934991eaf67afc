"""
SQLAlchemy models for the fuel delivery core.

This module provides a common entry point for all models.
"""

from .db_activity_log_models import ActivityLog
from .db_base import JSON, TimestampMixin, UUIDMixin
from .db_client_models import Client
from .db_config import (
    Base,
    DatabaseConfig,
    DatabaseManager,
    close_db,
    get_db_manager,
    import_all_models,
    initialize_db,
)
from .db_location_models import Location
from .db_order_models import Order
from .db_tenant_models import Tenant
from .db_truck_models import DeliveryTruck
from .db_user_models import User

__all__ = [
    # Base definitions
    "Base",
    "JSON",
    "TimestampMixin",
    "UUIDMixin",
    # Configuration
    "DatabaseConfig",
    "DatabaseManager",
    "close_db",
    "get_db_manager",
    "import_all_models",
    "initialize_db",
    # Models
    "ActivityLog",
    "Client",
    "DeliveryTruck",
    "Location",
    "Order",
    "Tenant",
    "User",
]
