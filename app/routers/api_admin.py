"""Admin-only management of user accounts and surety filings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from ..core.errors import InvalidPayloadError, server_error
from ..crud.sureties import create_surety, delete_surety, get_surety, list_sureties, update_surety
from ..crud.users import create_user, delete_user, get_user, list_users, update_user
from ..db.session import get_db
from ..deps.auth import AuthContext, require_admin
from ..schemas.common import MessageOut
from ..schemas.hardware import ImportSummary
from ..schemas.surety import SuretyCreate, SuretyOut, SuretyUpdate
from ..schemas.user import UserCreate, UserOut, UserUpdate
from ..services.filtering import SuretyCriteria, filter_sureties, filter_users
from ..services.record_import import import_sureties, import_users
from ..services.spreadsheet import (
    XLSX_MEDIA_TYPE,
    SpreadsheetError,
    export_filename,
    export_sureties,
    export_users,
    read_rows,
)

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _xlsx_response(content: bytes, prefix: str) -> Response:
    filename = export_filename(prefix)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _read_upload(file: UploadFile) -> list[dict]:
    raw = file.file.read()
    if not raw:
        raise InvalidPayloadError("No file uploaded.")
    try:
        return read_rows(raw)
    except SpreadsheetError as exc:
        raise InvalidPayloadError(str(exc)) from exc


def _summary_response(result) -> JSONResponse | ImportSummary:
    summary = ImportSummary(msg=result.msg, count=result.count, skipped=result.skipped)
    if not result.created:
        return JSONResponse(summary.model_dump(), status_code=200)
    return summary


def _surety_criteria(search: str, police_station: str, year: str, month: str) -> SuretyCriteria:
    return SuretyCriteria(search=search, police_station=police_station, year=year, month=month)


# ---------- Users ----------


@router.get("/users", response_model=list[UserOut])
def api_list_users(q: str = "", db: Session = Depends(get_db)):
    try:
        return filter_users(list_users(db), q)
    except Exception as exc:
        return server_error("List", exc)


@router.get("/users/export")
def api_export_users(q: str = "", db: Session = Depends(get_db)):
    try:
        content = export_users(filter_users(list_users(db), q))
    except Exception as exc:
        return server_error("Export", exc)
    return _xlsx_response(content, "User_List")


@router.post("/users/import", response_model=ImportSummary, status_code=201)
def api_import_users(file: UploadFile = File(...), db: Session = Depends(get_db)):
    rows = _read_upload(file)
    return _summary_response(import_users(db, rows))


@router.post("/users", response_model=UserOut, status_code=201)
def api_create_user(payload: UserCreate, db: Session = Depends(get_db)):
    try:
        return create_user(db, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        db.rollback()
        return server_error("Create", exc)


@router.put("/users/{user_id}", response_model=UserOut)
def api_update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    try:
        return update_user(db, user, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        db.rollback()
        return server_error("Update", exc)


@router.delete("/users/{user_id}", response_model=MessageOut)
def api_delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    if user_id == auth.user_id:
        raise HTTPException(400, "You cannot delete your own account")
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    try:
        delete_user(db, user)
    except Exception as exc:
        db.rollback()
        return server_error("Delete", exc)
    return {"msg": "User deleted successfully"}


# ---------- Sureties ----------


@router.get("/sureties", response_model=list[SuretyOut])
def api_list_sureties(
    search: str = "",
    police_station: str = Query(default="", alias="policeStation"),
    year: str = "",
    month: str = "",
    db: Session = Depends(get_db),
):
    criteria = _surety_criteria(search, police_station, year, month)
    try:
        return filter_sureties(list_sureties(db), criteria)
    except Exception as exc:
        return server_error("List", exc)


@router.get("/sureties/export")
def api_export_sureties(
    search: str = "",
    police_station: str = Query(default="", alias="policeStation"),
    year: str = "",
    month: str = "",
    db: Session = Depends(get_db),
):
    criteria = _surety_criteria(search, police_station, year, month)
    try:
        content = export_sureties(filter_sureties(list_sureties(db), criteria))
    except Exception as exc:
        return server_error("Export", exc)
    return _xlsx_response(content, "Surety_List")


@router.post("/sureties/import", response_model=ImportSummary, status_code=201)
def api_import_sureties(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    rows = _read_upload(file)
    return _summary_response(import_sureties(db, rows, get_user(db, auth.user_id)))


@router.post("/sureties", response_model=SuretyOut, status_code=201)
def api_create_surety(
    payload: SuretyCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    try:
        return create_surety(db, payload.model_dump(), get_user(db, auth.user_id))
    except Exception as exc:
        db.rollback()
        return server_error("Create", exc)


@router.put("/sureties/{surety_id}", response_model=SuretyOut)
def api_update_surety(surety_id: int, payload: SuretyUpdate, db: Session = Depends(get_db)):
    surety = get_surety(db, surety_id)
    if not surety:
        raise HTTPException(404, "Surety record not found")
    try:
        return update_surety(db, surety, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        db.rollback()
        return server_error("Update", exc)


@router.delete("/sureties/{surety_id}", response_model=MessageOut)
def api_delete_surety(surety_id: int, db: Session = Depends(get_db)):
    surety = get_surety(db, surety_id)
    if not surety:
        raise HTTPException(404, "Surety record not found")
    try:
        delete_surety(db, surety)
    except Exception as exc:
        db.rollback()
        return server_error("Delete", exc)
    return {"msg": "Surety deleted successfully"}
