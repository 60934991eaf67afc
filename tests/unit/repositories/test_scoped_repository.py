"""
Tests for the tenant-scoped base repository.

Uses TruckRepository as the concrete repository; database errors come from
real SQLite constraints rather than mocks.
"""

import pytest
from sqlalchemy.exc import OperationalError

from fuel_delivery_core.db import DeliveryTruck
from fuel_delivery_core.exceptions import (
    DomainError,
    ErrorCode,
    NotFoundError,
    RepositoryError,
    ValidationError,
)
from fuel_delivery_core.repositories.truck_repository import TruckRepository
from tests.fixtures.factories import TruckFactory


@pytest.fixture
def repo(db_session):
    return TruckRepository(db_session)


class TestScoping:
    @pytest.mark.parametrize("tenant_id", ["", None])
    def test_unscoped_query_refused(self, repo, tenant_id):
        with pytest.raises(RepositoryError) as exc_info:
            repo.get_by_id(tenant_id, "truck-1")

        assert exc_info.value.error_code == ErrorCode.PRECONDITION_FAILED

    def test_get_by_id_hides_other_tenant(self, repo, tenant, other_tenant, truck):
        assert repo.get_by_id(tenant.tenant_id, truck.id).id == truck.id
        assert repo.get_by_id(other_tenant.tenant_id, truck.id) is None

    def test_get_or_404(self, repo, other_tenant, truck):
        with pytest.raises(NotFoundError) as exc_info:
            repo.get_or_404(other_tenant.tenant_id, truck.id)

        assert exc_info.value.context["resource_type"] == "DeliveryTruck"

    def test_list_and_count(self, repo, tenant, other_tenant_row, tenant_row):
        TruckFactory(tenant=tenant_row, plate_no="B-1")
        TruckFactory(tenant=tenant_row, plate_no="A-1", active=False)
        TruckFactory(tenant=other_tenant_row, plate_no="C-1")

        plates = [t.plate_no for t in repo.list_trucks(tenant.tenant_id)]

        assert plates == ["A-1", "B-1"]
        assert repo.count(tenant.tenant_id) == 2
        assert repo.exists(tenant.tenant_id, DeliveryTruck.active.is_(False))
        assert [t.plate_no for t in repo.list_trucks(tenant.tenant_id, active_only=True)] == ["B-1"]


class TestWrites:
    def test_add_stamps_tenant(self, repo, tenant):
        created = repo.add(tenant.tenant_id, plate_no="NEW-1", tank_capacity_l=7000, tenant_id="ignored")

        assert created.id
        assert created.tenant_id == tenant.tenant_id

    def test_update_skips_identity_fields(self, repo, tenant, truck):
        repo.update(tenant.tenant_id, truck, {"tank_capacity_l": 6000, "tenant_id": "x", "id": "y"})

        assert truck.tank_capacity_l == 6000
        assert truck.tenant_id == tenant.tenant_id
        assert truck.id != "y"

    def test_update_other_tenant_row(self, repo, other_tenant, truck):
        with pytest.raises(NotFoundError):
            repo.update(other_tenant.tenant_id, truck, {"active": False})

    def test_delete_other_tenant_row(self, repo, other_tenant, tenant, truck):
        with pytest.raises(NotFoundError):
            repo.delete(other_tenant.tenant_id, truck)

        assert repo.get_by_id(tenant.tenant_id, truck.id) is not None

    def test_delete(self, repo, tenant, truck):
        repo.delete(tenant.tenant_id, truck)

        assert repo.get_by_id(tenant.tenant_id, truck.id) is None


class TestDatabaseErrors:
    def test_unique_violation_is_duplicate(self, repo, tenant, truck):
        with pytest.raises(DomainError) as exc_info:
            repo.add(tenant.tenant_id, plate_no=truck.plate_no, tank_capacity_l=100)

        assert exc_info.value.error_code == ErrorCode.DUPLICATE
        assert exc_info.value.status_code == 409

    def test_missing_tenant_is_constraint_violation(self, repo):
        with pytest.raises(RepositoryError) as exc_info:
            repo.add("no-such-tenant", plate_no="X-1", tank_capacity_l=100)

        assert exc_info.value.error_code == ErrorCode.CONSTRAINT_VIOLATION

    def test_check_constraint(self, repo, tenant):
        with pytest.raises(RepositoryError) as exc_info:
            repo.add(tenant.tenant_id, plate_no="X-2", tank_capacity_l=0)

        assert exc_info.value.error_code == ErrorCode.CONSTRAINT_VIOLATION

    def test_locked_database_is_serialization_failure(self, repo):
        error = OperationalError("UPDATE delivery_truck", {}, Exception("database is locked"))

        with pytest.raises(RepositoryError) as exc_info:
            repo._handle_db_error(error, "update", "truck-1")

        assert exc_info.value.error_code == ErrorCode.SERIALIZATION_FAILURE
        assert exc_info.value.context["entity_id"] == "truck-1"

    def test_package_errors_pass_through(self, repo):
        with pytest.raises(ValidationError):
            repo._handle_db_error(ValidationError("bad"), "add")

    def test_unexpected_error(self, repo):
        with pytest.raises(RepositoryError) as exc_info:
            repo._handle_db_error(KeyError("x"), "add")

        assert exc_info.value.error_code == ErrorCode.INTERNAL_ERROR
