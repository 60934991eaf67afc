"""Tests for the exception hierarchy and error factories."""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from fuel_delivery_core.exceptions import (
    AuthorizationError,
    BaseError,
    DomainError,
    ErrorCode,
    NotFoundError,
    RepositoryError,
    ServiceError,
    ValidationError,
    clear_correlation_id,
    duplicate,
    from_pydantic,
    get_correlation_id,
    invalid_transition,
    not_found,
    permission_denied,
    set_correlation_id,
    validation_failed,
)
from fuel_delivery_core.schemas.order_schema import OrderFilter


@pytest.fixture(autouse=True)
def no_correlation():
    clear_correlation_id()
    yield
    clear_correlation_id()


class TestBaseError:
    def test_defaults(self):
        error = BaseError("Something broke")

        assert error.message == "Something broke"
        assert error.error_code == ErrorCode.INTERNAL_ERROR
        assert error.status_code == 500
        assert error.context["error_id"] == error.error_id
        assert str(error) == "Something broke"

    def test_cause_is_recorded(self):
        error = BaseError("Wrapped", cause=ValueError("original"))

        assert error.context["cause"]["type"] == "ValueError"
        assert error.context["cause"]["message"] == "original"

    def test_correlation_id(self):
        set_correlation_id("corr-1")

        assert get_correlation_id() == "corr-1"
        assert BaseError("x").context["correlation_id"] == "corr-1"
        assert BaseError("x").to_dict()["error"]["correlation_id"] == "corr-1"

    def test_add_context_is_fluent(self):
        error = BaseError("x").add_context(order_id="o-1")

        assert error.context["order_id"] == "o-1"

    def test_to_dict(self):
        error = ValidationError("Bad window", field="window_end", cause=ValueError("inner"))

        result = error.to_dict()
        with_cause = error.to_dict(include_cause=True, include_traceback=True)

        assert result["error"]["type"] == "ValidationError"
        assert result["error"]["code"] == ErrorCode.VALIDATION_FAILED.value
        assert result["error"]["context"] == {"field": "window_end"}
        assert "cause" not in result["error"]
        assert with_cause["error"]["cause"]["type"] == "ValueError"
        assert with_cause["error"]["cause"]["traceback"]

    def test_error_chain(self):
        first = ValueError("disk")
        second = RepositoryError("db", cause=first)
        third = ServiceError("service", cause=second)

        assert third.error_chain == [third, second, first]

    @pytest.mark.parametrize(
        "error_class,level",
        [(ServiceError, logging.ERROR), (NotFoundError, logging.WARNING)],
    )
    def test_logged_by_status(self, caplog, error_class, level):
        with caplog.at_level(logging.DEBUG, logger="fuel_delivery"):
            error_class("logged")

        assert any(r.levelno == level and "logged" in r.getMessage() for r in caplog.records)


class TestBoundaryErrors:
    @pytest.mark.parametrize(
        "error,code,status",
        [
            (ValidationError("v"), ErrorCode.VALIDATION_FAILED, 400),
            (NotFoundError("n"), ErrorCode.NOT_FOUND, 404),
            (DomainError("d"), ErrorCode.BUSINESS_RULE_VIOLATION, 422),
            (AuthorizationError("a"), ErrorCode.PERMISSION_DENIED, 403),
            (ServiceError("s", operation="op"), ErrorCode.INTERNAL_ERROR, 500),
            (RepositoryError("r"), ErrorCode.DATABASE_ERROR, 500),
        ],
    )
    def test_codes_and_status(self, error, code, status):
        assert error.error_code == code
        assert error.status_code == status

    def test_defaults_overridden_per_raise(self):
        conflict = DomainError("Truck busy", error_code=ErrorCode.CONFLICT, status_code=409)
        locked = RepositoryError("locked", error_code=ErrorCode.SERIALIZATION_FAILURE)

        assert (conflict.error_code, conflict.status_code) == (ErrorCode.CONFLICT, 409)
        assert (locked.error_code, locked.status_code) == (ErrorCode.SERIALIZATION_FAILURE, 500)
        assert DomainError("rule").status_code == 422

    def test_service_error_operation(self):
        assert ServiceError("s", operation="schedule_order").context["operation"] == "schedule_order"

    def test_not_found_without_resource_type(self):
        assert "resource_type" not in NotFoundError("gone").context


class TestFactories:
    def test_not_found(self):
        error = not_found("Order", order_id="o-1")

        assert error.message == "Order not found: order_id=o-1"
        assert error.context["resource_type"] == "Order"
        assert error.context["order_id"] == "o-1"

    def test_duplicate(self):
        error = duplicate("DeliveryTruck", plate_no="TRK-1")

        assert isinstance(error, DomainError)
        assert error.error_code == ErrorCode.DUPLICATE
        assert error.status_code == 409
        assert error.message == "Duplicate DeliveryTruck: plate_no=TRK-1"

    def test_validation_failed(self):
        error = validation_failed("fuel_liters", 0, "must be positive")

        assert error.message == "Validation failed for fuel_liters: must be positive"
        assert error.context["value"] == "0"
        assert error.context["reason"] == "must be positive"

    def test_permission_denied(self):
        error = permission_denied("deliver", "order", actor_id="u-1")

        assert error.message == "Permission denied: deliver on order"
        assert error.context["actor_id"] == "u-1"

    def test_invalid_transition(self):
        error = invalid_transition("o-1", "DRAFT", "schedule", "SUBMITTED")

        assert error.message == "Can only schedule orders in SUBMITTED status (order o-1 is DRAFT)"
        assert error.error_code == ErrorCode.INVALID_STATE_TRANSITION
        assert error.status_code == 409
        assert error.context["current_status"] == "DRAFT"

    def test_from_pydantic(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            OrderFilter(limit=0)

        error = from_pydantic(exc_info.value, "OrderFilter")

        assert isinstance(error, ValidationError)
        assert error.context["field"] == "limit"
        assert error.context["errors"][0]["loc"] == ["limit"]
