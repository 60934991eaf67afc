"""
Audit recording for every committed mutation.

``AuditRecorder`` is the collaborator interface the other services call.
``ActivityLogService`` implements it by adding an activity log row to the
caller's session, so the entry commits or rolls back together with the
mutation it describes.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Union

from sqlalchemy import event, inspect

from ..config import get_config
from ..constants import AuditAction
from ..context.operation_context import operation
from ..context.tenant_context import TenantContext
from ..enums import OrderStatus, PolicyAction, ResourceType
from ..policies.access_policy import ensure_authorized
from ..repositories.activity_log_repository import ActivityLogRepository
from ..schemas.activity_log_schema import ActivityLogFilter, ActivityLogRead
from ..schemas.user_schema import Actor
from ..utils.json_utils import to_json_safe
from ..utils.time_utils import ensure_utc
from .base_service import SessionManagedService


class AuditRecorder(Protocol):
    def record(
        self,
        tenant: TenantContext,
        actor: Actor,
        subject_type: str,
        subject_id: str,
        action: str,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
    ) -> None: ...


def entity_snapshot(entity: Any) -> Dict[str, Any]:
    """JSON-safe column values of a mapped entity."""
    mapper = inspect(entity).mapper
    snapshot = {}
    for attr in mapper.column_attrs:
        value = getattr(entity, attr.key)
        if isinstance(value, datetime):
            value = ensure_utc(value)
        snapshot[attr.key] = to_json_safe(value)
    return snapshot


def diff_snapshots(
    before: Dict[str, Any], after: Dict[str, Any], ignore=("updated_at",)
) -> tuple:
    """Split two snapshots into the old and new values of the changed fields."""
    changed = [k for k in after if k not in ignore and before.get(k) != after.get(k)]
    return {k: before.get(k) for k in changed}, {k: after[k] for k in changed}


def record_created(
    recorder: AuditRecorder,
    tenant: TenantContext,
    actor: Actor,
    subject_type: Union[ResourceType, str],
    entity: Any,
    description: Optional[str] = None,
) -> None:
    recorder.record(
        tenant,
        actor,
        subject_type,
        entity.id,
        AuditAction.CREATED.value,
        new_values=entity_snapshot(entity),
        description=description,
    )


def record_updated(
    recorder: AuditRecorder,
    tenant: TenantContext,
    actor: Actor,
    subject_type: Union[ResourceType, str],
    entity: Any,
    before: Dict[str, Any],
    description: Optional[str] = None,
) -> None:
    """Record only the fields that changed relative to ``before``."""
    old_values, new_values = diff_snapshots(before, entity_snapshot(entity))
    recorder.record(
        tenant,
        actor,
        subject_type,
        entity.id,
        AuditAction.UPDATED.value,
        old_values=old_values,
        new_values=new_values,
        description=description,
    )


def record_deleted(
    recorder: AuditRecorder,
    tenant: TenantContext,
    actor: Actor,
    subject_type: Union[ResourceType, str],
    entity: Any,
    description: Optional[str] = None,
) -> None:
    recorder.record(
        tenant,
        actor,
        subject_type,
        entity.id,
        AuditAction.DELETED.value,
        old_values=entity_snapshot(entity),
        description=description,
    )


def record_order_transition(
    recorder: AuditRecorder,
    tenant: TenantContext,
    actor: Actor,
    order: Any,
    old_status: OrderStatus,
    new_status: OrderStatus,
    additional_data: Optional[Dict[str, Any]] = None,
) -> None:
    """One entry per lifecycle transition; the action is the new status in lower case."""
    old_value = OrderStatus(old_status).value
    new_value = OrderStatus(new_status).value
    recorder.record(
        tenant,
        actor,
        ResourceType.ORDER,
        order.id,
        new_value.lower(),
        old_values={"status": old_value},
        new_values={"status": new_value, **(additional_data or {})},
        description=f"Order #{order.id} transitioned from {old_value} to {new_value}",
    )


class PostCommitRecorder:
    """
    Holds entries for a recorder that does not write through the session.

    Entries reach the wrapped recorder only once the session commits; a
    rollback discards them.
    """

    def __init__(self, session, recorder: AuditRecorder):
        self.recorder = recorder
        self._pending: List[tuple] = []
        event.listen(session, "after_commit", self._deliver)
        event.listen(session, "after_soft_rollback", self._discard)

    def record(self, *args, **kwargs) -> None:
        self._pending.append((args, kwargs))

    def _deliver(self, session) -> None:
        pending, self._pending = self._pending, []
        for args, kwargs in pending:
            self.recorder.record(*args, **kwargs)

    def _discard(self, session, previous_transaction) -> None:
        self._pending = []


def bind_recorder(session, audit: Optional[AuditRecorder] = None, logger=None) -> AuditRecorder:
    """
    The recorder a service writes its audit entries to.

    Without ``audit`` this is an ``ActivityLogService`` on the service's own
    session. A recorder on another session, or none at all, is wrapped so it
    only sees committed work.
    """
    if audit is None:
        return ActivityLogService(session=session, logger=logger)
    if getattr(audit, "session", None) is session:
        return audit
    return PostCommitRecorder(session, audit)


class ActivityLogService(SessionManagedService):
    """Writes and reads the tenant activity log."""

    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.repository = ActivityLogRepository(self.session, self.logger)

    def record(
        self,
        tenant: TenantContext,
        actor: Actor,
        subject_type: Union[ResourceType, str],
        subject_id: str,
        action: str,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
    ) -> None:
        subject_type = getattr(subject_type, "value", subject_type)
        if not get_config().features.enable_audit_logging:
            self.logger.debug(
                "Audit logging disabled, entry skipped",
                extra={"tenant_id": tenant.tenant_id, "model_id": subject_id, "action": action},
            )
            return

        entry = self.repository.add(
            tenant.tenant_id,
            user_id=actor.id,
            model_type=subject_type,
            model_id=subject_id,
            action=action,
            old_values=to_json_safe(old_values) if old_values is not None else None,
            new_values=to_json_safe(new_values) if new_values is not None else None,
            description=description,
            ip_address=actor.ip_address,
        )
        self.logger.info(
            f"Activity recorded: {subject_type} {action}",
            extra={
                "tenant_id": tenant.tenant_id,
                "activity_id": entry.id,
                "user_id": actor.id,
                "model_type": subject_type,
                "model_id": subject_id,
                "action": action,
            },
        )

    def log_created(self, tenant, actor, subject_type, entity, description=None) -> None:
        record_created(self, tenant, actor, subject_type, entity, description)

    def log_updated(self, tenant, actor, subject_type, entity, before, description=None) -> None:
        record_updated(self, tenant, actor, subject_type, entity, before, description)

    def log_deleted(self, tenant, actor, subject_type, entity, description=None) -> None:
        record_deleted(self, tenant, actor, subject_type, entity, description)

    def log_order_transition(
        self, tenant, actor, order, old_status, new_status, additional_data=None
    ) -> None:
        record_order_transition(self, tenant, actor, order, old_status, new_status, additional_data)

    @operation()
    def list_activity(
        self, tenant: TenantContext, actor: Actor, filters: Optional[ActivityLogFilter] = None
    ) -> List[ActivityLogRead]:
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.ACTIVITY_LOG, tenant=tenant)
        filters = self._validate(ActivityLogFilter, filters or {})
        return self._to_reads(ActivityLogRead, self.repository.search(tenant.tenant_id, filters))

    @operation()
    def list_recent(self, tenant: TenantContext, actor: Actor, limit: int = 20) -> List[ActivityLogRead]:
        ensure_authorized(actor, PolicyAction.VIEW_ANY, ResourceType.ACTIVITY_LOG, tenant=tenant)
        return self._to_reads(ActivityLogRead, self.repository.list(tenant.tenant_id, limit=limit))

    @operation()
    def list_for_subject(
        self,
        tenant: TenantContext,
        actor: Actor,
        subject_type: Union[ResourceType, str],
        subject_id: str,
    ) -> List[ActivityLogRead]:
        ensure_authorized(actor, PolicyAction.VIEW, ResourceType.ACTIVITY_LOG, tenant=tenant)
        subject_type = getattr(subject_type, "value", subject_type)
        entries = self.repository.for_subject(tenant.tenant_id, subject_type, subject_id)
        return self._to_reads(ActivityLogRead, entries)
