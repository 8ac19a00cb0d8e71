"""Shape inbound hardware records and import them in a single transaction.

WHAT: Converts the loosely structured rows produced by spreadsheet uploads into
``HardwareRecord`` rows with embedded ``HardwareItem`` children.
WHEN: Used by the single-create endpoint and by the batch import endpoint.
WHY: Offices send slightly different column sets; shaping them in one place
keeps the storage schema consistent while never dropping unknown columns.
HOW: ``shape_record`` renames and cleans one record, ``build_record`` turns the
shaped dict into ORM objects and ``batch_import_hardware`` wraps the whole
batch in one all-or-nothing transaction.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy.orm import Session

from ..core.dates import safe_date
from ..core.errors import BatchImportError, InvalidPayloadError, RecordNotFoundError
from ..models.hardware import HardwareItem, HardwareRecord
from ..models.user import User

LOGGER = logging.getLogger(__name__)

EMPTY_IMPORT_MSG = "File processed, but no valid records were inserted after filtering."

# Inbound header keys with a dedicated column.
HEADER_FIELDS: dict[str, str] = {
    "courtName": "court_name",
    "companyName": "company_name",
    "deadStockRegSrNo": "dead_stock_reg_sr_no",
    "deadStockBookPageNo": "dead_stock_book_page_no",
    "source": "source",
}
DATE_FIELDS: dict[str, str] = {
    "deliveryDate": "delivery_date",
    "installationDate": "installation_date",
}
# Keys the server always owns; inbound values are discarded.
SERVER_OWNED_KEYS = frozenset({"_id", "__v", "id", "items", "user", "createdAt"})
ITEM_FIELDS: dict[str, str] = {
    "hardwareName": "item_name",
    "serialNumber": "serial_no",
    "company": "company",
}


@dataclass
class ImportResult:
    msg: str
    count: int
    skipped: int = 0
    created: bool = False


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _text(value: Any) -> Any:
    """Read spreadsheet cells as text; numbers such as register numbers become strings."""

    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


def map_item(item: Mapping[str, Any]) -> dict[str, Any]:
    """Rename one inbound line item to the stored shape."""

    return {column: _text(item.get(key)) for key, column in ITEM_FIELDS.items()}


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def shape_record(record: Any, user_id: int | None) -> dict[str, Any] | None:
    """Return a storage-ready dict for ``record`` or ``None`` when it must be skipped.

    A record is skipped when ``hardwareItems`` is missing or empty.
    ``employeeAllocated`` is copied as-is; the model refuses non-text values.
    Keys without a dedicated column are kept in ``extra_fields``.
    """

    if not isinstance(record, Mapping):
        return None
    hardware_items = record.get("hardwareItems")
    if not isinstance(hardware_items, list) or not hardware_items:
        return None

    shaped: dict[str, Any] = {
        "items": [map_item(item if isinstance(item, Mapping) else {}) for item in hardware_items],
        "employee_allocated": record.get("employeeAllocated"),
        "user_id": user_id,
    }
    extra: dict[str, Any] = {}
    for key, value in record.items():
        if key in ("hardwareItems", "employeeAllocated") or key in SERVER_OWNED_KEYS:
            continue
        if key in DATE_FIELDS:
            shaped[DATE_FIELDS[key]] = safe_date(value)
        elif key in HEADER_FIELDS:
            shaped[HEADER_FIELDS[key]] = _text(value)
        else:
            extra[key] = _json_safe(value)
    for column in DATE_FIELDS.values():
        shaped.setdefault(column, None)
    shaped["extra_fields"] = extra
    return shaped


def build_record(shaped: Mapping[str, Any]) -> HardwareRecord:
    """Turn a shaped dict into an unsaved ``HardwareRecord`` with its items."""

    data = dict(shaped)
    items = [HardwareItem(**item) for item in data.pop("items")]
    data.setdefault("created_at", _utcnow())
    return HardwareRecord(items=items, **data)


def batch_import_hardware(db: Session, records: Any, user_id: int) -> ImportResult:
    """Import ``records`` for ``user_id`` in one transaction.

    Records without line items are skipped with a warning. Everything that
    survives shaping is inserted in one flush. Any error rolls the whole batch
    back, so the reported count is either every shaped record or zero.
    """

    if not isinstance(records, list) or not records:
        raise InvalidPayloadError("Import payload must be a non-empty array of hardware records.")

    try:
        user = db.get(User, user_id)
        if user is None:
            db.rollback()
            raise RecordNotFoundError("User not found")

        documents: list[dict[str, Any]] = []
        skipped = 0
        for index, record in enumerate(records):
            shaped = shape_record(record, user.id)
            if shaped is None:
                skipped += 1
                LOGGER.warning(
                    "hardware.import.skipped",
                    extra={"extra_data": {"row": index, "reason": "empty or missing hardwareItems"}},
                )
                continue
            documents.append(shaped)

        if not documents:
            db.commit()
            return ImportResult(msg=EMPTY_IMPORT_MSG, count=0, skipped=skipped)

        db.add_all([build_record(doc) for doc in documents])
        db.flush()
        db.commit()
    except RecordNotFoundError:
        raise
    except Exception as exc:
        db.rollback()
        LOGGER.exception("hardware.import.failed")
        raise BatchImportError(str(exc)) from exc

    count = len(documents)
    LOGGER.info(
        "hardware.import.completed",
        extra={"extra_data": {"count": count, "skipped": skipped, "user_id": user_id}},
    )
    return ImportResult(
        msg=f"Successfully imported {count} hardware records.",
        count=count,
        skipped=skipped,
        created=True,
    )
