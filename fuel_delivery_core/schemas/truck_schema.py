"""
Pydantic schemas for delivery trucks.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .mixins import CoreEntityMixin, require_not_blank, require_positive


class TruckCreate(BaseModel):
    plate_no: str = Field(min_length=1, max_length=50)
    tank_capacity_l: int
    active: bool = True

    model_config = ConfigDict(extra="forbid")

    @field_validator("plate_no")
    def check_plate(cls, v: str) -> str:
        return require_not_blank(v, "plate_no").upper()

    @field_validator("tank_capacity_l")
    def check_capacity(cls, v: int) -> int:
        return require_positive(v, "tank_capacity_l")


class TruckUpdate(BaseModel):
    plate_no: Optional[str] = Field(default=None, max_length=50)
    tank_capacity_l: Optional[int] = None
    active: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("plate_no")
    def check_plate(cls, v: Optional[str]) -> Optional[str]:
        v = require_not_blank(v, "plate_no")
        return v.upper() if v is not None else None

    @field_validator("tank_capacity_l")
    def check_capacity(cls, v: Optional[int]) -> Optional[int]:
        return require_positive(v, "tank_capacity_l")


class TruckRead(CoreEntityMixin):
    plate_no: str
    tank_capacity_l: int
    active: bool


class TruckFilter(BaseModel):
    active_only: bool = False
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)
