"""
Common Pydantic schema mixins and field checks.

This module provides reusable mixins for common technical patterns across
schemas. The check helpers raise the package ValidationError directly so
callers receive field-level detail instead of a pydantic error.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import ErrorCode, ValidationError
from ..utils.time_utils import ensure_utc


class IdMixin(BaseModel):
    """Mixin for schemas that include a unique identifier."""

    id: str = Field(..., description="Unique identifier for the record")


class TenantMixin(BaseModel):
    """Mixin for schemas that include tenant isolation (multi-tenant architecture)."""

    tenant_id: str = Field(..., min_length=1, max_length=36, description="Owning tenant")


class TimestampMixin(BaseModel):
    """Mixin for schemas that include creation and update timestamps."""

    created_at: datetime = Field(..., description="Timestamp when the record was created")
    updated_at: datetime = Field(..., description="Timestamp when the record was last updated")

    @field_validator("created_at", "updated_at")
    def normalise_timestamps(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class CoreEntityMixin(IdMixin, TenantMixin, TimestampMixin):
    """Common mixin for read schemas with ID, tenant isolation, and timestamps."""

    model_config = ConfigDict(from_attributes=True)


class DateRangeFilterMixin(BaseModel):
    """Mixin for filter schemas that support created-date range queries."""

    created_after: Optional[datetime] = Field(
        None, description="Filter for records created at or after this timestamp"
    )
    created_before: Optional[datetime] = Field(
        None, description="Filter for records created at or before this timestamp"
    )


def require_positive(value: Optional[int], field: str) -> Optional[int]:
    if value is not None and value <= 0:
        raise ValidationError(
            f"{field} must be a positive integer",
            field=field,
            error_code=ErrorCode.OUT_OF_RANGE,
            value=value,
        )
    return value


def require_in_range(
    value: Optional[float], field: str, low: float, high: float
) -> Optional[float]:
    if value is not None and not (low <= value <= high):
        raise ValidationError(
            f"{field} must be between {low} and {high}",
            field=field,
            error_code=ErrorCode.OUT_OF_RANGE,
            value=value,
        )
    return value


def require_window_order(
    window_start: Optional[datetime], window_end: Optional[datetime]
) -> None:
    """Reject windows whose end is not strictly after their start."""
    if window_start is None or window_end is None:
        return
    if ensure_utc(window_end) <= ensure_utc(window_start):
        raise ValidationError(
            "window_end must be after window_start",
            field="window_end",
            error_code=ErrorCode.VALIDATION_FAILED,
            window_start=ensure_utc(window_start).isoformat(),
            window_end=ensure_utc(window_end).isoformat(),
        )


def require_not_blank(value: Optional[str], field: str) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValidationError(
            f"{field} must not be blank",
            field=field,
            error_code=ErrorCode.MISSING_REQUIRED,
        )
    return value.strip() if value is not None else None


def validate_email(value: Optional[str], field: str) -> Optional[str]:
    """Basic email validation."""
    if value and "@" not in value:
        raise ValidationError(
            "Invalid email address",
            error_code=ErrorCode.INVALID_FORMAT,
            field=field,
            value=value,
        )
    return value
