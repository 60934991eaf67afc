"""
Tests for the audit recorder and the activity log views.

Audit entries are written in the same session as the mutation they
describe, so a failed mutation leaves no entry behind.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import event

from fuel_delivery_core.config import AppConfig, set_config
from fuel_delivery_core.db import ActivityLog
from fuel_delivery_core.enums import OrderStatus, ResourceType
from fuel_delivery_core.exceptions import AuthorizationError, DomainError
from fuel_delivery_core.schemas.activity_log_schema import ActivityLogFilter
from fuel_delivery_core.schemas.user_schema import Actor
from fuel_delivery_core.services.activity_log_service import (
    PostCommitRecorder,
    diff_snapshots,
    entity_snapshot,
)
from fuel_delivery_core.services.client_service import ClientService
from fuel_delivery_core.services.order_service import OrderService
from tests.fixtures.factories import OrderFactory


class RecordingAudit:
    """In-memory AuditRecorder used to observe what a service records."""

    def __init__(self):
        self.entries = []

    def record(self, tenant, actor, subject_type, subject_id, action, old_values=None,
               new_values=None, description=None):
        self.entries.append(
            {
                "tenant_id": tenant.tenant_id,
                "user_id": actor.id,
                "subject_type": getattr(subject_type, "value", subject_type),
                "subject_id": subject_id,
                "action": action,
                "old_values": old_values,
                "new_values": new_values,
                "description": description,
            }
        )


class TestSnapshots:
    def test_entity_snapshot_is_json_safe(self, location, admin):
        order = OrderFactory(location=location, created_by=admin.id)

        snapshot = entity_snapshot(order)

        assert snapshot["status"] == "DRAFT"
        assert snapshot["fuel_liters"] == 1000
        assert isinstance(snapshot["window_start"], str)
        assert datetime.fromisoformat(snapshot["window_start"]) == order.window_start

    def test_diff_snapshots_ignores_updated_at(self):
        before = {"name": "a", "phone": "1", "updated_at": "t1"}
        after = {"name": "b", "phone": "1", "updated_at": "t2"}

        assert diff_snapshots(before, after) == ({"name": "a"}, {"name": "b"})


class TestActivityLogRecording:
    def test_record_stores_actor_ip(self, db_session, activity_log_service, tenant, tenant_row, admin):
        actor = Actor(id=admin.id, tenant_id=admin.tenant_id, role=admin.role, ip_address="192.0.2.1")

        activity_log_service.record(
            tenant, actor, ResourceType.CLIENT, "client-1", "created", new_values={"name": "x"}
        )
        db_session.commit()

        entry = db_session.query(ActivityLog).one()
        assert entry.ip_address == "192.0.2.1"
        assert entry.model_type == "client"
        assert entry.tenant_id == tenant.tenant_id

    def test_record_skipped_when_disabled(self, db_session, client_service, tenant, admin):
        config = AppConfig()
        config.features.enable_audit_logging = False
        set_config(config)

        client_service.create_client(tenant, admin, {"name": "Quiet"})

        assert db_session.query(ActivityLog).count() == 0

    def test_convenience_helpers(self, db_session, activity_log_service, tenant, admin, client):
        before = entity_snapshot(client)
        client.name = "Renamed"

        activity_log_service.log_created(tenant, admin, ResourceType.CLIENT, client)
        activity_log_service.log_updated(tenant, admin, ResourceType.CLIENT, client, before)
        activity_log_service.log_deleted(tenant, admin, ResourceType.CLIENT, client)
        db_session.commit()

        entries = db_session.query(ActivityLog).order_by(ActivityLog.created_at, ActivityLog.id).all()
        by_action = {e.action: e for e in entries}
        assert set(by_action) == {"created", "updated", "deleted"}
        assert by_action["updated"].old_values == {"name": "Harbor Logistics"}
        assert by_action["updated"].new_values == {"name": "Renamed"}
        assert by_action["deleted"].old_values["id"] == client.id

    def test_log_order_transition(self, db_session, activity_log_service, tenant, admin, location):
        order = OrderFactory(location=location, created_by=admin.id, status=OrderStatus.EN_ROUTE)

        activity_log_service.log_order_transition(
            tenant, admin, order, OrderStatus.EN_ROUTE, OrderStatus.DELIVERED, {"delivered_liters": 990}
        )
        db_session.commit()

        entry = db_session.query(ActivityLog).one()
        assert entry.action == "delivered"
        assert entry.new_values == {"status": "DELIVERED", "delivered_liters": 990}

    def test_services_accept_injected_recorder(self, db_session, tenant, admin):
        audit = RecordingAudit()
        clients = ClientService(session=db_session, audit=audit)

        created = clients.create_client(tenant, admin, {"name": "Observed"})

        assert [e["action"] for e in audit.entries] == ["created"]
        assert audit.entries[0]["subject_id"] == created.id
        assert db_session.query(ActivityLog).count() == 0

    def test_transition_recorded_once(self, db_session, tenant, admin, location):
        audit = RecordingAudit()
        orders = OrderService(session=db_session, audit=audit)
        order = OrderFactory(location=location, created_by=admin.id)

        orders.submit_order(tenant, admin, order.id)

        assert audit.entries == [
            {
                "tenant_id": tenant.tenant_id,
                "user_id": admin.id,
                "subject_type": "order",
                "subject_id": order.id,
                "action": "submitted",
                "old_values": {"status": "DRAFT"},
                "new_values": {"status": "SUBMITTED"},
                "description": f"Order #{order.id} transitioned from DRAFT to SUBMITTED",
            }
        ]

    def test_injected_recorder_waits_for_commit(self, db_session, tenant, admin):
        audit = RecordingAudit()
        clients = ClientService(session=db_session, audit=audit)

        def refuse_commit(session):
            raise RuntimeError("disk full")

        event.listen(db_session, "before_commit", refuse_commit)
        try:
            with pytest.raises(RuntimeError):
                clients.create_client(tenant, admin, {"name": "Never Stored"})
        finally:
            event.remove(db_session, "before_commit", refuse_commit)

        assert audit.entries == []

        clients.create_client(tenant, admin, {"name": "Stored"})

        assert [e["new_values"]["name"] for e in audit.entries] == ["Stored"]

    def test_recorder_on_same_session_used_directly(self, db_session, activity_log_service):
        clients = ClientService(session=db_session, audit=activity_log_service)
        wrapped = ClientService(session=db_session, audit=RecordingAudit()).audit

        assert clients.audit is activity_log_service
        assert isinstance(wrapped, PostCommitRecorder)

    def test_failed_transition_records_nothing(self, db_session, tenant, admin, location):
        audit = RecordingAudit()
        orders = OrderService(session=db_session, audit=audit)
        order = OrderFactory(location=location, created_by=admin.id, status=OrderStatus.DELIVERED)

        with pytest.raises(DomainError):
            orders.cancel_order(tenant, admin, order.id)

        assert audit.entries == []


class TestActivityLogViews:
    @pytest.fixture
    def history(self, client_service, tenant, admin, dispatcher):
        first = client_service.create_client(tenant, admin, {"name": "One"})
        second = client_service.create_client(tenant, dispatcher, {"name": "Two"})
        client_service.update_client(tenant, admin, first.id, {"contact_phone": "1"})
        return first, second

    def test_list_activity_filters(self, activity_log_service, tenant, admin, dispatcher, history):
        first, _ = history

        by_subject = activity_log_service.list_activity(
            tenant, admin, ActivityLogFilter(model_type="client", model_id=first.id)
        )
        by_user = activity_log_service.list_activity(tenant, admin, {"user_id": dispatcher.id})
        updates = activity_log_service.list_activity(tenant, admin, {"action": "updated"})

        assert sorted(e.action for e in by_subject) == ["created", "updated"]
        assert [e.action for e in by_user] == ["created"]
        assert [e.model_id for e in updates] == [first.id]

    def test_list_activity_date_range(self, activity_log_service, tenant, admin, history):
        future = datetime(2100, 1, 1, tzinfo=timezone.utc)

        assert activity_log_service.list_activity(tenant, admin, {"date_from": future}) == []
        assert len(activity_log_service.list_activity(tenant, admin, {"date_to": future})) == 3

    def test_list_for_subject_oldest_first(self, activity_log_service, tenant, admin, history):
        first, _ = history

        entries = activity_log_service.list_for_subject(tenant, admin, ResourceType.CLIENT, first.id)

        assert [e.action for e in entries] == ["created", "updated"]

    def test_list_recent(self, activity_log_service, tenant, admin, history):
        assert len(activity_log_service.list_recent(tenant, admin, limit=2)) == 2

    @pytest.mark.parametrize("role_fixture", ["dispatcher", "driver", "client_rep"])
    def test_only_admin_reads_activity(self, request, activity_log_service, tenant, role_fixture):
        actor = request.getfixturevalue(role_fixture)

        with pytest.raises(AuthorizationError):
            activity_log_service.list_activity(tenant, actor)

    def test_other_tenant_sees_nothing(self, activity_log_service, other_tenant, other_admin, history):
        assert activity_log_service.list_activity(other_tenant, other_admin) == []
