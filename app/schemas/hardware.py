"""Wire models for hardware records, their line items and import summaries.

Create and import payloads are deliberately *not* modelled here: they are
accepted as raw JSON so unknown keys can be passed through to storage (see
``app.services.hardware_import.shape_record``).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .common import CamelModel


def _wire_keys(model: type[BaseModel]) -> frozenset[str]:
    """Every key pydantic could read a field of ``model`` from."""

    keys: set[str] = set()
    for name, field in model.model_fields.items():
        keys.add(name)
        keys.update(alias for alias in (field.alias, field.serialization_alias) if alias)
        validation_alias = field.validation_alias
        if isinstance(validation_alias, str):
            keys.add(validation_alias)
        elif isinstance(validation_alias, AliasChoices):
            keys.update(choice for choice in validation_alias.choices if isinstance(choice, str))
    return frozenset(keys)


class HardwareItemOut(CamelModel):
    id: int = Field(alias="_id")
    item_name: str
    serial_no: Optional[str] = None
    company: Optional[str] = None


class HardwareRecordOut(CamelModel):
    # Pass-through fields stored in ``extra_fields`` are flattened back in.
    model_config = ConfigDict(extra="allow")

    id: int = Field(alias="_id")
    court_name: Optional[str] = None
    company_name: Optional[str] = None
    delivery_date: Optional[date] = None
    installation_date: Optional[date] = None
    employee_allocated: Optional[str] = None
    dead_stock_reg_sr_no: Optional[str] = None
    dead_stock_book_page_no: Optional[str] = None
    source: Optional[str] = None
    user_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("user_id", "user"),
        serialization_alias="user",
    )
    items: list[HardwareItemOut] = Field(default_factory=list)
    created_at: str

    @classmethod
    def from_record(cls, record: Any) -> "HardwareRecordOut":
        reserved = _wire_keys(cls)
        data = {k: v for k, v in (record.extra_fields or {}).items() if k not in reserved}
        data.update(cls.model_validate(record).model_dump(by_alias=True))
        return cls.model_validate(data)


class HardwareRow(CamelModel):
    """One line item with its parent's header fields joined on."""

    model_config = ConfigDict(extra="allow")

    id: int = Field(alias="_id")
    parent_id: int
    hardware_name: str
    serial_number: Optional[str] = None
    company: Optional[str] = None
    court_name: Optional[str] = None
    company_name: Optional[str] = None
    delivery_date: Optional[date] = None
    installation_date: Optional[date] = None
    dead_stock_reg_sr_no: Optional[str] = None
    dead_stock_book_page_no: Optional[str] = None
    source: Optional[str] = None
    employee_allocated: Optional[str] = None
    user_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("user_id", "user"),
        serialization_alias="user",
    )


class HardwareMutationOut(BaseModel):
    msg: str
    hardware: HardwareRecordOut


class ImportSummary(BaseModel):
    msg: str
    count: int
    skipped: int = 0
