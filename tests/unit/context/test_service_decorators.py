"""Tests for the unit-of-work and error-wrapping service decorators."""

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from fuel_delivery_core.config import AppConfig, set_config
from fuel_delivery_core.context.service_decorators import (
    handle_service_errors,
    is_serialization_failure,
    transactional,
)
from fuel_delivery_core.exceptions import (
    DomainError,
    ErrorCode,
    RepositoryError,
    ServiceError,
    ValidationError,
)
from fuel_delivery_core.services.base_service import SessionManagedService


class PgSerializationError(Exception):
    pgcode = "40001"


class PgDeadlockError(Exception):
    sqlstate = "40P01"


def locked() -> OperationalError:
    return OperationalError("UPDATE fuel_order", {}, Exception("database is locked"))


class CountingSession:
    """Stands in for a Session; only commit and rollback are used by the decorator."""

    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class FlakyService(SessionManagedService):
    """Fails with the given errors, one per call, then succeeds."""

    def __init__(self, failures=()):
        super().__init__(session=CountingSession())
        self.failures = list(failures)
        self.calls = 0

    @transactional()
    @handle_service_errors()
    def run(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "done"

    @transactional(retry_on_serialization_failure=False)
    @handle_service_errors()
    def run_once(self):
        self.calls += 1
        raise locked()

    @transactional()
    def outer(self):
        return self.inner()

    @transactional()
    def inner(self):
        self.calls += 1
        return "nested"


class TestIsSerializationFailure:
    @pytest.mark.parametrize(
        "exc,expected",
        [
            (DBAPIError("SELECT 1", {}, PgSerializationError("could not serialize")), True),
            (DBAPIError("SELECT 1", {}, PgDeadlockError("deadlock detected")), True),
            (locked(), True),
            (OperationalError("SELECT 1", {}, Exception("disk I/O error")), False),
            (IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")), False),
            (RepositoryError("x", error_code=ErrorCode.SERIALIZATION_FAILURE), True),
            (RepositoryError("x"), False),
            (ValueError("nope"), False),
        ],
    )
    def test_classification(self, exc, expected):
        assert is_serialization_failure(exc) is expected


class TestTransactional:
    def test_commits_on_success(self):
        service = FlakyService()

        assert service.run() == "done"
        assert service.session.commits == 1
        assert service.session.rollbacks == 0

    def test_rolls_back_and_reraises_domain_errors(self):
        service = FlakyService([DomainError("rule broken")])

        with pytest.raises(DomainError):
            service.run()

        assert service.calls == 1
        assert service.session.commits == 0
        assert service.session.rollbacks == 1

    def test_retries_serialization_failure(self):
        service = FlakyService([locked(), locked()])

        assert service.run() == "done"
        assert service.calls == 3
        assert service.session.rollbacks == 2
        assert service.session.commits == 1

    def test_gives_up_after_configured_retries(self):
        config = AppConfig()
        config.transactions.max_serialization_retries = 2
        set_config(config)
        service = FlakyService([locked() for _ in range(5)])

        with pytest.raises(RepositoryError) as exc_info:
            service.run()

        assert exc_info.value.error_code == ErrorCode.SERIALIZATION_FAILURE
        assert exc_info.value.context["attempts"] == 3
        assert service.calls == 3
        assert service.session.commits == 0

    def test_retry_can_be_disabled(self):
        service = FlakyService()

        with pytest.raises(RepositoryError):
            service.run_once()

        assert service.calls == 1

    def test_nested_calls_share_one_commit(self):
        service = FlakyService()

        assert service.outer() == "nested"
        assert service.session.commits == 1
        assert service._in_transaction is False


class TestHandleServiceErrors:
    def test_unexpected_error_becomes_service_error(self):
        service = FlakyService([KeyError("boom")])

        with pytest.raises(ServiceError) as exc_info:
            service.run()

        assert exc_info.value.error_code == ErrorCode.INTERNAL_ERROR
        assert exc_info.value.context["operation"] == "run"
        assert isinstance(exc_info.value.cause, KeyError)

    def test_package_errors_pass_through(self):
        service = FlakyService([ValidationError("bad", field="x")])

        with pytest.raises(ValidationError):
            service.run()
