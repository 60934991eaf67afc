"""
Pydantic schemas for tenants.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import ErrorCode, ValidationError
from .mixins import IdMixin, TimestampMixin

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class TenantCreate(BaseModel):
    """
    Schema for creating a new tenant.
    """

    name: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=100)
    is_active: bool = Field(default=True)

    model_config = ConfigDict(extra="ignore")

    @field_validator("slug")
    def validate_slug(cls, v: str) -> str:
        """Slugs appear in request paths: lowercase letters, digits and single hyphens."""
        v = v.strip().lower()
        if not _SLUG_PATTERN.match(v):
            raise ValidationError(
                "slug may only contain lowercase letters, digits and hyphens",
                error_code=ErrorCode.INVALID_FORMAT,
                field="slug",
                value=v,
            )
        return v


class TenantRead(IdMixin, TimestampMixin):
    """
    Schema for reading tenant data.
    """

    name: str
    slug: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
