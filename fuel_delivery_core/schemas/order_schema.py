"""
Pydantic schemas for fuel orders and their lifecycle payloads.

Datetimes are normalised to aware UTC on the way in. Update payloads reject
unknown fields; the lifecycle payloads carry only what their transition may
touch.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..enums import OrderStatus
from ..exceptions import ErrorCode, ValidationError
from ..utils.time_utils import ensure_utc
from .mixins import (
    CoreEntityMixin,
    DateRangeFilterMixin,
    require_positive,
    require_window_order,
)

# Fields of an order that may never be cleared by an update
_REQUIRED_ON_UPDATE = ("client_id", "location_id", "fuel_liters")


class OrderCreate(BaseModel):
    """
    Schema for creating a DRAFT order.

    The minimum orderable volume is a configurable business rule and is
    checked by the order service, not here.
    """

    client_id: str = Field(min_length=1, max_length=36)
    location_id: str = Field(min_length=1, max_length=36)
    fuel_liters: int
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("fuel_liters")
    def check_fuel(cls, v: int) -> int:
        return require_positive(v, "fuel_liters")

    @field_validator("window_start", "window_end")
    def normalise_window(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_window(self) -> "OrderCreate":
        require_window_order(self.window_start, self.window_end)
        return self


class OrderUpdate(BaseModel):
    """Partial update of a DRAFT order. Only explicitly set fields are applied."""

    client_id: Optional[str] = Field(default=None, min_length=1, max_length=36)
    location_id: Optional[str] = Field(default=None, min_length=1, max_length=36)
    fuel_liters: Optional[int] = None
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("fuel_liters")
    def check_fuel(cls, v: Optional[int]) -> Optional[int]:
        return require_positive(v, "fuel_liters")

    @field_validator("window_start", "window_end")
    def normalise_window(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_required_not_cleared(self) -> "OrderUpdate":
        for name in _REQUIRED_ON_UPDATE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValidationError(
                    f"{name} cannot be cleared",
                    field=name,
                    error_code=ErrorCode.MISSING_REQUIRED,
                )
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ScheduleOrderRequest(BaseModel):
    truck_id: str = Field(min_length=1, max_length=36)

    model_config = ConfigDict(extra="forbid")


class DispatchOrderRequest(BaseModel):
    driver_id: str = Field(min_length=1, max_length=36)

    model_config = ConfigDict(extra="forbid")


class DeliverOrderRequest(BaseModel):
    delivered_liters: int

    model_config = ConfigDict(extra="forbid")


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)

    model_config = ConfigDict(extra="forbid")

    @field_validator("reason")
    def blank_reason_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class OrderRead(CoreEntityMixin):
    client_id: str
    location_id: str
    truck_id: Optional[str] = None
    created_by: str
    driver_id: Optional[str] = None
    fuel_liters: int
    status: OrderStatus
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    delivered_liters: Optional[int] = None
    delivered_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    @field_validator("window_start", "window_end", "delivered_at")
    def normalise_datetimes(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class OrderFilter(DateRangeFilterMixin):
    """Filters for listing orders. ``status`` accepts one status or a list."""

    status: Optional[List[OrderStatus]] = None
    client_id: Optional[str] = None
    location_id: Optional[str] = None
    truck_id: Optional[str] = None
    driver_id: Optional[str] = None
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("status", mode="before")
    def coerce_status(
        cls, v: Union[None, str, OrderStatus, List[Union[str, OrderStatus]]]
    ) -> Optional[List[Union[str, OrderStatus]]]:
        if v is None or isinstance(v, list):
            return v
        return [v]

    @field_validator("created_after", "created_before")
    def normalise_range(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class AvailabilityResult(BaseModel):
    """Outcome of a truck availability check for one window."""

    available: bool
    conflicting_order_ids: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
