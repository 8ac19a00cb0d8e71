from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import Field, field_validator

from .common import CamelModel, coerce_optional_date


class UserCreate(CamelModel):
    full_name: str = Field(min_length=1)
    dob: Optional[date] = None
    mobile_no: Optional[str] = None
    village: Optional[str] = None
    email_id: str = Field(min_length=3)
    password: Optional[str] = Field(default=None, min_length=6)
    role: Literal["user", "admin"] = "user"

    @field_validator("dob", mode="before")
    @classmethod
    def coerce_dob(cls, value):
        return coerce_optional_date(value)


class UserUpdate(CamelModel):
    full_name: Optional[str] = None
    dob: Optional[date] = None
    mobile_no: Optional[str] = None
    village: Optional[str] = None
    email_id: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[Literal["user", "admin"]] = None

    @field_validator("dob", mode="before")
    @classmethod
    def coerce_dob(cls, value):
        return coerce_optional_date(value)


class UserOut(CamelModel):
    id: int = Field(alias="_id")
    full_name: str
    dob: Optional[date] = None
    mobile_no: Optional[str] = None
    village: Optional[str] = None
    email_id: str
    role: str
    created_at: str
