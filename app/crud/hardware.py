# app/crud/hardware.py
from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..core.dates import safe_date
from ..core.errors import InvalidPayloadError, RecordNotFoundError
from ..models.hardware import HardwareItem, HardwareRecord
from ..services.hardware_import import (
    DATE_FIELDS,
    HEADER_FIELDS,
    ITEM_FIELDS,
    SERVER_OWNED_KEYS,
    build_record,
    map_item,
    shape_record,
)

ITEM_NOT_FOUND_MSG = "Hardware item (subdocument) not found within the record."
PARENT_NOT_FOUND_MSG = "Parent hardware record not found."

# Flattened row key -> wire name. Pass-through fields may shadow neither.
ROW_FIELDS: dict[str, str] = {
    "id": "_id",
    "parent_id": "parentId",
    "hardware_name": "hardwareName",
    "serial_number": "serialNumber",
    "company": "company",
    "court_name": "courtName",
    "company_name": "companyName",
    "delivery_date": "deliveryDate",
    "installation_date": "installationDate",
    "dead_stock_reg_sr_no": "deadStockRegSrNo",
    "dead_stock_book_page_no": "deadStockBookPageNo",
    "source": "source",
    "employee_allocated": "employeeAllocated",
    "user_id": "user",
}
_ROW_RESERVED = frozenset(ROW_FIELDS) | frozenset(ROW_FIELDS.values())


def list_records(db: Session, user_id: int | None = None) -> list[HardwareRecord]:
    """
    Return hardware records newest first, optionally only those created by ``user_id``.
    """
    stmt = select(HardwareRecord).order_by(desc(HardwareRecord.created_at), desc(HardwareRecord.id))
    if user_id is not None:
        stmt = stmt.where(HardwareRecord.user_id == user_id)
    return db.execute(stmt).scalars().all()


def get_record(db: Session, record_id: int) -> HardwareRecord | None:
    return db.get(HardwareRecord, record_id)


def flatten_records(records: list[HardwareRecord]) -> list[dict[str, Any]]:
    """
    One row per line item with the parent's header fields joined on.

    Pass-through fields are added first and never under a key (or wire name)
    that belongs to the item or its header.
    """
    rows: list[dict[str, Any]] = []
    for record in records:
        extra = {
            key: value
            for key, value in (record.extra_fields or {}).items()
            if key not in _ROW_RESERVED
        }
        for item in record.items:
            row = dict(extra)
            row.update(
                {
                    "id": item.id,
                    "parent_id": record.id,
                    "hardware_name": item.item_name,
                    "serial_number": item.serial_no,
                    "company": item.company,
                    "court_name": record.court_name,
                    "company_name": record.company_name,
                    "delivery_date": record.delivery_date,
                    "installation_date": record.installation_date,
                    "dead_stock_reg_sr_no": record.dead_stock_reg_sr_no,
                    "dead_stock_book_page_no": record.dead_stock_book_page_no,
                    "source": record.source,
                    "employee_allocated": record.employee_allocated,
                    "user_id": record.user_id,
                }
            )
            rows.append(row)
    return rows


def list_hardware_rows(db: Session) -> list[dict[str, Any]]:
    return flatten_records(list_records(db))


def create_hardware(db: Session, payload: Mapping[str, Any], user_id: int) -> HardwareRecord:
    """
    Shape and persist a single hardware record.
    """
    shaped = shape_record(payload, user_id)
    if shaped is None:
        raise InvalidPayloadError("At least one hardware item (hardwareItems) is required.")
    try:
        record = build_record(shaped)
        db.add(record)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(record)
    return record


def _find_item(record: HardwareRecord, item_id: Any) -> HardwareItem | None:
    try:
        wanted = int(item_id)
    except (TypeError, ValueError):
        return None
    return next((item for item in record.items if item.id == wanted), None)


def _merge_header(record: HardwareRecord, fields: Mapping[str, Any]) -> None:
    extra = dict(record.extra_fields or {})
    for key, value in fields.items():
        if key in SERVER_OWNED_KEYS:
            continue
        if key == "employeeAllocated":
            record.employee_allocated = value
        elif key in DATE_FIELDS:
            setattr(record, DATE_FIELDS[key], safe_date(value))
        elif key in HEADER_FIELDS:
            setattr(record, HEADER_FIELDS[key], value)
        else:
            extra[key] = value
    # Reassign so SQLAlchemy notices the JSON column changed.
    record.extra_fields = extra


def update_hardware_item(db: Session, record_id: int, payload: Mapping[str, Any]) -> HardwareRecord:
    """
    Merge header fields into the record and update the one line item named by
    ``hardwareItems[0]._id``. Only keys present in the payload are touched.
    """
    hardware_items = payload.get("hardwareItems")
    target = hardware_items[0] if isinstance(hardware_items, list) and hardware_items else None
    if not isinstance(target, Mapping) or not target.get("_id"):
        raise InvalidPayloadError("Item ID (_id) and update data are required.")

    record = get_record(db, record_id)
    if record is None:
        raise RecordNotFoundError(ITEM_NOT_FOUND_MSG)
    item = _find_item(record, target["_id"])
    if item is None:
        raise RecordNotFoundError(ITEM_NOT_FOUND_MSG)

    try:
        _merge_header(record, {k: v for k, v in payload.items() if k != "hardwareItems"})
        mapped = map_item(target)
        for key, column in ITEM_FIELDS.items():
            if key in target:
                setattr(item, column, mapped[column])
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(record)
    return record


def delete_hardware_item(db: Session, record_id: int, item_id: int) -> HardwareRecord:
    """
    Remove one line item; the header stays even when it ends up empty.
    """
    record = get_record(db, record_id)
    if record is None:
        raise RecordNotFoundError(PARENT_NOT_FOUND_MSG)
    item = _find_item(record, item_id)
    if item is not None:
        record.items.remove(item)
        db.commit()
        db.refresh(record)
    return record


def delete_hardware(db: Session, record: HardwareRecord) -> None:
    """
    Delete the header and, through the cascade, every item it owns.
    """
    db.delete(record)
    db.commit()
