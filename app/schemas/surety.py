from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from ..core.validation import aadhar_error, normalize_act_name
from .common import CamelModel, coerce_optional_date


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _SuretyFields(CamelModel):
    """Rules shared by the create and update payloads."""

    @field_validator(
        "address",
        "police_station",
        "case_fir_no",
        "section",
        "accused_name",
        "accused_address",
        "court_city",
        mode="before",
        check_fields=False,
    )
    @classmethod
    def strip_text(cls, value):
        value = _blank_to_none(value)
        if isinstance(value, (int, float)):
            value = str(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("aadhar_no", mode="before", check_fields=False)
    @classmethod
    def check_aadhar(cls, value):
        if value is None:
            return None
        text = str(value).strip()
        error = aadhar_error(text)
        if error:
            raise ValueError(error)
        return text or None

    @field_validator("act_name", mode="before", check_fields=False)
    @classmethod
    def canonical_act(cls, value):
        return normalize_act_name(_blank_to_none(value))

    @field_validator("shurity_amount", mode="before", check_fields=False)
    @classmethod
    def blank_amount(cls, value):
        if isinstance(value, str):
            cleaned = value.strip().replace(",", "").replace("₹", "")
            return cleaned or None
        return value

    @field_validator("date_of_surety", mode="before", check_fields=False)
    @classmethod
    def coerce_surety_date(cls, value):
        return coerce_optional_date(value)


class SuretyCreate(_SuretyFields):
    shurity_name: str = Field(min_length=1)
    address: Optional[str] = None
    aadhar_no: Optional[str] = None
    police_station: Optional[str] = None
    case_fir_no: Optional[str] = None
    act_name: Optional[str] = None
    section: Optional[str] = None
    accused_name: Optional[str] = None
    accused_address: Optional[str] = None
    shurity_amount: Optional[float] = Field(default=None, ge=0)
    date_of_surety: Optional[date] = None
    court_city: Optional[str] = None

    @field_validator("shurity_name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class SuretyUpdate(_SuretyFields):
    shurity_name: Optional[str] = None
    address: Optional[str] = None
    aadhar_no: Optional[str] = None
    police_station: Optional[str] = None
    case_fir_no: Optional[str] = None
    act_name: Optional[str] = None
    section: Optional[str] = None
    accused_name: Optional[str] = None
    accused_address: Optional[str] = None
    shurity_amount: Optional[float] = Field(default=None, ge=0)
    date_of_surety: Optional[date] = None
    court_city: Optional[str] = None


class SuretyOut(CamelModel):
    id: int = Field(alias="_id")
    shurity_name: str
    address: Optional[str] = None
    aadhar_no: Optional[str] = None
    police_station: Optional[str] = None
    case_fir_no: Optional[str] = None
    act_name: Optional[str] = None
    section: Optional[str] = None
    accused_name: Optional[str] = None
    accused_address: Optional[str] = None
    shurity_amount: Optional[float] = None
    date_of_surety: Optional[date] = None
    court_city: Optional[str] = None
    user_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("user_id", "user"),
        serialization_alias="user",
    )
    assigned_to_user: Optional[str] = None
    created_at: str
    updated_at: str
