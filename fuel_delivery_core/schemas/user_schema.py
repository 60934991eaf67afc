"""
Pydantic schemas for tenant users and the acting user of a request.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import UserRole
from .mixins import CoreEntityMixin, require_not_blank, validate_email


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=200)
    role: UserRole

    model_config = ConfigDict(extra="forbid")

    @field_validator("email")
    def check_email(cls, v: str) -> str:
        return validate_email(v.strip().lower(), "email")

    @field_validator("name")
    def check_name(cls, v: str) -> str:
        return require_not_blank(v, "name")


class UserRead(CoreEntityMixin):
    name: str
    email: str
    role: UserRole


class Actor(BaseModel):
    """
    The user performing an operation.

    Built from a stored user so id, tenant and role cannot be forged
    independently of each other.
    """

    id: str
    tenant_id: str
    role: UserRole
    ip_address: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_user(cls, user: UserRead, ip_address: Optional[str] = None) -> "Actor":
        return cls(id=user.id, tenant_id=user.tenant_id, role=user.role, ip_address=ip_address)
