"""
Pydantic schemas for clients.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .mixins import CoreEntityMixin, require_not_blank, validate_email


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    contact_person: Optional[str] = Field(default=None, max_length=200)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    contact_email: Optional[str] = Field(default=None, max_length=200)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    def check_name(cls, v: str) -> str:
        return require_not_blank(v, "name")

    @field_validator("contact_email")
    def check_email(cls, v: Optional[str]) -> Optional[str]:
        return validate_email(v, "contact_email")


class ClientUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied."""

    name: Optional[str] = Field(default=None, max_length=200)
    contact_person: Optional[str] = Field(default=None, max_length=200)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    contact_email: Optional[str] = Field(default=None, max_length=200)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    def check_name(cls, v: Optional[str]) -> Optional[str]:
        return require_not_blank(v, "name")

    @field_validator("contact_email")
    def check_email(cls, v: Optional[str]) -> Optional[str]:
        return validate_email(v, "contact_email")


class ClientRead(CoreEntityMixin):
    name: str
    contact_person: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    locations_count: Optional[int] = None


class ClientFilter(BaseModel):
    search: Optional[str] = Field(
        default=None, description="Substring matched against name, contact person, email and phone"
    )
    has_locations: Optional[bool] = None
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)
