"""Hardware inventory endpoints: single-record CRUD, batch import and export."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from ..core.errors import InvalidPayloadError, RecordNotFoundError, server_error
from ..crud.hardware import (
    create_hardware,
    delete_hardware,
    delete_hardware_item,
    flatten_records,
    get_record,
    list_hardware_rows,
    list_records,
    update_hardware_item,
)
from ..db.session import get_db
from ..deps.auth import AuthContext, require_admin, require_user
from ..schemas.hardware import HardwareMutationOut, HardwareRecordOut, HardwareRow, ImportSummary
from ..services.hardware_import import batch_import_hardware
from ..services.spreadsheet import XLSX_MEDIA_TYPE, export_filename, export_hardware

router = APIRouter(prefix="/api/user/hardware", tags=["hardware"])


@router.get("", response_model=list[HardwareRow])
def api_list(db: Session = Depends(get_db), auth: AuthContext = Depends(require_user)):
    try:
        return list_hardware_rows(db)
    except Exception as exc:
        return server_error("List", exc)


@router.get("/mine", response_model=list[HardwareRecordOut])
def api_list_mine(db: Session = Depends(get_db), auth: AuthContext = Depends(require_user)):
    try:
        records = list_records(db, user_id=auth.user_id)
    except Exception as exc:
        return server_error("List", exc)
    return [HardwareRecordOut.from_record(r) for r in records]


@router.get("/export")
def api_export(db: Session = Depends(get_db), auth: AuthContext = Depends(require_user)):
    try:
        content = export_hardware(list_hardware_rows(db))
    except Exception as exc:
        return server_error("Export", exc)
    filename = export_filename("Hardware_List")
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=HardwareRecordOut, status_code=201)
def api_create(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    try:
        record = create_hardware(db, payload, auth.user_id)
    except InvalidPayloadError:
        raise
    except Exception as exc:
        return server_error("Create", exc)
    return HardwareRecordOut.from_record(record)


@router.post("/import", response_model=ImportSummary, status_code=201)
def api_import(
    records: Any = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    result = batch_import_hardware(db, records, auth.user_id)
    summary = ImportSummary(msg=result.msg, count=result.count, skipped=result.skipped)
    if not result.created:
        return JSONResponse(summary.model_dump(), status_code=200)
    return summary


@router.put("/{record_id}", response_model=HardwareMutationOut)
def api_update(
    record_id: int,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    try:
        record = update_hardware_item(db, record_id, payload)
    except (InvalidPayloadError, RecordNotFoundError):
        raise
    except Exception as exc:
        return server_error("Update", exc)
    return HardwareMutationOut(
        msg="Hardware item and metadata updated successfully",
        hardware=HardwareRecordOut.from_record(record),
    )


@router.delete("/{record_id}/{item_id}", response_model=HardwareMutationOut)
def api_delete_item(
    record_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    try:
        record = delete_hardware_item(db, record_id, item_id)
    except RecordNotFoundError:
        raise
    except Exception as exc:
        db.rollback()
        return server_error("Delete", exc)
    return HardwareMutationOut(
        msg="Hardware item deleted successfully",
        hardware=HardwareRecordOut.from_record(record),
    )


@router.delete("/{record_id}")
def api_delete_record(
    record_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    record = get_record(db, record_id)
    if not record:
        raise HTTPException(404, "Parent hardware record not found.")
    try:
        delete_hardware(db, record)
    except Exception as exc:
        db.rollback()
        return server_error("Delete", exc)
    return {"msg": "Hardware record deleted successfully"}
