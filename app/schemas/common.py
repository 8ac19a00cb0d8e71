from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..core.dates import safe_date


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageOut(BaseModel):
    msg: str


def coerce_optional_date(value):
    """Before-validator for optional date fields that also accepts DD/MM/YYYY."""

    if value in (None, ""):
        return None
    if isinstance(value, str):
        parsed = safe_date(value)
        if parsed is None:
            raise ValueError(f"'{value}' is not a valid date")
        return parsed
    return value
