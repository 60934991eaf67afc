"""
Pydantic schemas for activity log entries.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.time_utils import ensure_utc
from .mixins import IdMixin, TenantMixin


class ActivityLogRead(IdMixin, TenantMixin):
    user_id: str
    model_type: str
    model_id: str
    action: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    description: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    @field_validator("created_at")
    def normalise_created(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ActivityLogFilter(BaseModel):
    model_type: Optional[str] = None
    model_id: Optional[str] = None
    action: Optional[str] = None
    user_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: int = Field(default=50, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    @field_validator("date_from", "date_to")
    def normalise_range(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)
