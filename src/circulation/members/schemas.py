"""Pydantic schemas for library members."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..persistence.base import Entity


def _check_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("email must look like name@domain")
    return v


class MemberBase(BaseModel):
    """Base member fields."""

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=200)
    phone: str = Field("", max_length=50)

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        """Trim surrounding whitespace."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        return _check_email(v)


class MemberCreate(MemberBase):
    """Schema for registering a member."""

    pass


class MemberUpdate(BaseModel):
    """Schema for updating a member."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, min_length=3, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        return _check_email(v)


class Member(Entity):
    """A registered member."""

    name: str
    email: str
    phone: str = ""
