"""Tests for tenant, user, client, location and truck schemas."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from fuel_delivery_core.enums import UserRole
from fuel_delivery_core.exceptions import ErrorCode, ValidationError
from fuel_delivery_core.schemas.client_schema import ClientCreate, ClientUpdate
from fuel_delivery_core.schemas.location_schema import LocationCreate, LocationUpdate
from fuel_delivery_core.schemas.tenant_schema import TenantCreate
from fuel_delivery_core.schemas.truck_schema import TruckCreate, TruckUpdate
from fuel_delivery_core.schemas.user_schema import Actor, UserCreate


class TestTenantCreate:
    def test_slug_is_normalised(self):
        assert TenantCreate(name="Acme", slug=" Acme-Fuel ").slug == "acme-fuel"

    @pytest.mark.parametrize("slug", ["acme fuel", "acme--fuel", "-acme", "acme_fuel", "acme-"])
    def test_invalid_slug(self, slug):
        with pytest.raises(ValidationError) as exc_info:
            TenantCreate(name="Acme", slug=slug)

        assert exc_info.value.error_code == ErrorCode.INVALID_FORMAT

    def test_extra_fields_ignored(self):
        tenant = TenantCreate(name="Acme", slug="acme", plan="gold")

        assert not hasattr(tenant, "plan")


class TestUserCreate:
    def test_email_normalised(self):
        user = UserCreate(name="Dana", email="  Dana@Example.COM ", role="DISPATCHER")

        assert user.email == "dana@example.com"
        assert user.role == UserRole.DISPATCHER

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            UserCreate(name="Dana", email="not-an-email", role="ADMIN")

    def test_unknown_role(self):
        with pytest.raises(PydanticValidationError):
            UserCreate(name="Dana", email="dana@example.com", role="OWNER")

    def test_actor_is_frozen(self):
        actor = Actor(id="u-1", tenant_id="t-1", role=UserRole.ADMIN)

        with pytest.raises(PydanticValidationError):
            actor.role = UserRole.DRIVER


class TestClientSchemas:
    def test_name_is_stripped(self):
        assert ClientCreate(name="  Harbor  ").name == "Harbor"

    def test_blank_name(self):
        with pytest.raises(ValidationError) as exc_info:
            ClientCreate(name="   ")

        assert exc_info.value.context["field"] == "name"

    def test_invalid_contact_email(self):
        with pytest.raises(ValidationError):
            ClientCreate(name="Harbor", contact_email="harbor.example.com")

    def test_update_keeps_unset_fields_out(self):
        assert ClientUpdate(contact_phone="555").model_dump(exclude_unset=True) == {"contact_phone": "555"}


class TestLocationSchemas:
    @pytest.mark.parametrize("lat,lng", [(-90, -180), (90, 180), (0.0, 0.0), (None, None)])
    def test_coordinates_in_range(self, lat, lng):
        location = LocationCreate(client_id="c-1", address="1 Dock Road", lat=lat, lng=lng)

        assert (location.lat, location.lng) == (lat, lng)

    @pytest.mark.parametrize("field,value", [("lat", 90.5), ("lat", -91), ("lng", 180.1), ("lng", -200)])
    def test_coordinates_out_of_range(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            LocationCreate(client_id="c-1", address="1 Dock Road", **{field: value})

        assert exc_info.value.context["field"] == field
        assert exc_info.value.error_code == ErrorCode.OUT_OF_RANGE

    def test_update_blank_address(self):
        with pytest.raises(ValidationError):
            LocationUpdate(address=" ")


class TestTruckSchemas:
    def test_plate_uppercased(self):
        assert TruckCreate(plate_no=" trk-7 ", tank_capacity_l=8000).plate_no == "TRK-7"

    @pytest.mark.parametrize("capacity", [0, -100])
    def test_capacity_must_be_positive(self, capacity):
        with pytest.raises(ValidationError):
            TruckCreate(plate_no="TRK-7", tank_capacity_l=capacity)

    def test_update_plate(self):
        assert TruckUpdate(plate_no="abc-1").plate_no == "ABC-1"
        assert TruckUpdate(active=False).plate_no is None
