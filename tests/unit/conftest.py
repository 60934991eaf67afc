"""
Unit test conftest.py - Component-specific fixtures.

This module provides fixtures specific to unit testing:
- Service fixtures sharing the test session
- A tenant with one actor per role, plus a second tenant for isolation tests
- A small order world (client, location, truck) in the first tenant
"""

import pytest

from fuel_delivery_core.context.tenant_context import TenantContext
from fuel_delivery_core.enums import UserRole
from fuel_delivery_core.schemas.user_schema import Actor
from fuel_delivery_core.services.activity_log_service import ActivityLogService
from fuel_delivery_core.services.availability_service import AvailabilityService
from fuel_delivery_core.services.client_service import ClientService
from fuel_delivery_core.services.dashboard_service import DashboardService
from fuel_delivery_core.services.location_service import LocationService
from fuel_delivery_core.services.order_service import OrderService
from fuel_delivery_core.services.tenant_service import TenantService
from fuel_delivery_core.services.truck_service import TruckService
from fuel_delivery_core.services.user_service import UserService
from tests.fixtures.factories import (
    ClientFactory,
    LocationFactory,
    TenantFactory,
    TruckFactory,
    UserFactory,
)

# ==================== SERVICE FIXTURES ====================


@pytest.fixture(scope="function")
def tenant_service(db_session):
    return TenantService(session=db_session)


@pytest.fixture(scope="function")
def user_service(db_session):
    return UserService(session=db_session)


@pytest.fixture(scope="function")
def client_service(db_session):
    return ClientService(session=db_session)


@pytest.fixture(scope="function")
def location_service(db_session):
    return LocationService(session=db_session)


@pytest.fixture(scope="function")
def truck_service(db_session):
    return TruckService(session=db_session)


@pytest.fixture(scope="function")
def order_service(db_session):
    return OrderService(session=db_session)


@pytest.fixture(scope="function")
def availability_service(db_session):
    return AvailabilityService(session=db_session)


@pytest.fixture(scope="function")
def activity_log_service(db_session):
    return ActivityLogService(session=db_session)


@pytest.fixture(scope="function")
def dashboard_service(db_session):
    return DashboardService(session=db_session)


# ==================== TENANT / ACTOR FIXTURES ====================


def make_actor(tenant_row, role: UserRole) -> Actor:
    """Persist a user of the given role and return it as an Actor."""
    user = UserFactory(tenant=tenant_row, role=role)
    return Actor(id=user.id, tenant_id=user.tenant_id, role=user.role)


@pytest.fixture
def tenant_row(db_session):
    return TenantFactory(slug="acme-fuel", name="Acme Fuel")


@pytest.fixture
def tenant(tenant_row) -> TenantContext:
    return TenantContext.from_tenant(tenant_row)


@pytest.fixture
def other_tenant_row(db_session):
    return TenantFactory(slug="other-fuel", name="Other Fuel")


@pytest.fixture
def other_tenant(other_tenant_row) -> TenantContext:
    return TenantContext.from_tenant(other_tenant_row)


@pytest.fixture
def admin(tenant_row) -> Actor:
    return make_actor(tenant_row, UserRole.ADMIN)


@pytest.fixture
def dispatcher(tenant_row) -> Actor:
    return make_actor(tenant_row, UserRole.DISPATCHER)


@pytest.fixture
def driver(tenant_row) -> Actor:
    return make_actor(tenant_row, UserRole.DRIVER)


@pytest.fixture
def client_rep(tenant_row) -> Actor:
    return make_actor(tenant_row, UserRole.CLIENT_REP)


@pytest.fixture
def other_admin(other_tenant_row) -> Actor:
    return make_actor(other_tenant_row, UserRole.ADMIN)


# ==================== DIRECTORY FIXTURES ====================


@pytest.fixture
def client(tenant_row):
    return ClientFactory(tenant=tenant_row, name="Harbor Logistics")


@pytest.fixture
def location(client):
    return LocationFactory(client=client, address="1 Dock Road")


@pytest.fixture
def truck(tenant_row):
    return TruckFactory(tenant=tenant_row, plate_no="TRK-1", tank_capacity_l=5000)
