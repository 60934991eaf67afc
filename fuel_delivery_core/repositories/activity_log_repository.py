"""Repository for activity log entries. Entries are appended, never updated."""

from typing import List

from ..db.db_activity_log_models import ActivityLog
from ..schemas.activity_log_schema import ActivityLogFilter
from .base_repository import TenantScopedRepository


class ActivityLogRepository(TenantScopedRepository[ActivityLog]):
    def __init__(self, session, logger=None):
        super().__init__(session, ActivityLog, logger)

    def search(self, tenant_id: str, filters: ActivityLogFilter) -> List[ActivityLog]:
        criteria = []
        if filters.model_type:
            criteria.append(ActivityLog.model_type == filters.model_type)
        if filters.model_id:
            criteria.append(ActivityLog.model_id == filters.model_id)
        if filters.action:
            criteria.append(ActivityLog.action == filters.action)
        if filters.user_id:
            criteria.append(ActivityLog.user_id == filters.user_id)
        if filters.date_from:
            criteria.append(ActivityLog.created_at >= filters.date_from)
        if filters.date_to:
            criteria.append(ActivityLog.created_at <= filters.date_to)
        return self.list(tenant_id, *criteria, limit=filters.limit, offset=filters.offset)

    def for_subject(self, tenant_id: str, model_type: str, model_id: str) -> List[ActivityLog]:
        return self.list(
            tenant_id,
            ActivityLog.model_type == model_type,
            ActivityLog.model_id == model_id,
            limit=1000,
            sort_direction="asc",
        )
