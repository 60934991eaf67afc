"""
Activity log model.

Write-only from the lifecycle's point of view: rows are appended after each
committed mutation and only read back by the admin activity views.
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    String,
    Text,
)

from ..utils.time_utils import utc_now
from .db_base import JSON, UUIDMixin
from .db_config import Base


class ActivityLog(Base, UUIDMixin):
    __tablename__ = "activity_log"

    tenant_id = Column(String(36), ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=False)
    model_type = Column(String(50), nullable=False)
    model_id = Column(String(36), nullable=False)
    action = Column(String(50), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    description = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id", "tenant_id"],
            ["app_user.id", "app_user.tenant_id"],
            ondelete="CASCADE",
            name="fk_activity_log_user_tenant",
        ),
        Index("ix_activity_log_tenant_type_created", "tenant_id", "model_type", "created_at"),
        Index("ix_activity_log_tenant_user_created", "tenant_id", "user_id", "created_at"),
        Index("ix_activity_log_tenant_subject", "tenant_id", "model_type", "model_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ActivityLog(model_type='{self.model_type}', model_id='{self.model_id}', "
            f"action='{self.action}')>"
        )
