"""
Pydantic schemas for delivery locations.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .mixins import CoreEntityMixin, require_in_range, require_not_blank


class LocationCreate(BaseModel):
    client_id: str = Field(min_length=1, max_length=36)
    address: str = Field(min_length=1, max_length=500)
    lat: Optional[float] = None
    lng: Optional[float] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("address")
    def check_address(cls, v: str) -> str:
        return require_not_blank(v, "address")

    @field_validator("lat")
    def check_lat(cls, v: Optional[float]) -> Optional[float]:
        return require_in_range(v, "lat", -90, 90)

    @field_validator("lng")
    def check_lng(cls, v: Optional[float]) -> Optional[float]:
        return require_in_range(v, "lng", -180, 180)


class LocationUpdate(BaseModel):
    client_id: Optional[str] = Field(default=None, min_length=1, max_length=36)
    address: Optional[str] = Field(default=None, max_length=500)
    lat: Optional[float] = None
    lng: Optional[float] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("address")
    def check_address(cls, v: Optional[str]) -> Optional[str]:
        return require_not_blank(v, "address")

    @field_validator("lat")
    def check_lat(cls, v: Optional[float]) -> Optional[float]:
        return require_in_range(v, "lat", -90, 90)

    @field_validator("lng")
    def check_lng(cls, v: Optional[float]) -> Optional[float]:
        return require_in_range(v, "lng", -180, 180)


class LocationRead(CoreEntityMixin):
    client_id: str
    address: str
    lat: Optional[float] = None
    lng: Optional[float] = None


class LocationFilter(BaseModel):
    client_id: Optional[str] = None
    search: Optional[str] = Field(default=None, description="Substring matched against address")
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)
