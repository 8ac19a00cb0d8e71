"""Endpoints for signed-in court users: profile and surety filings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import server_error
from ..crud.sureties import create_surety, list_sureties
from ..crud.users import get_user
from ..db.session import get_db
from ..deps.auth import AuthContext, require_user
from ..schemas.surety import SuretyCreate, SuretyOut
from ..schemas.user import UserOut
from ..services.filtering import SuretyCriteria, filter_sureties

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/me", response_model=UserOut)
def api_me(db: Session = Depends(get_db), auth: AuthContext = Depends(require_user)):
    user = get_user(db, auth.user_id)
    if user is None:
        raise HTTPException(404, "User not found")
    return user


@router.get("/court-stations", response_model=list[str])
def api_court_stations(auth: AuthContext = Depends(require_user)):
    return settings.court_stations


@router.post("/sureties", response_model=SuretyOut, status_code=201)
def api_create_surety(
    payload: SuretyCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    user = get_user(db, auth.user_id)
    if user is None:
        raise HTTPException(404, "User not found")
    try:
        return create_surety(db, payload.model_dump(), user, pin_station=True)
    except Exception as exc:
        db.rollback()
        return server_error("Create", exc)


@router.get("/sureties", response_model=list[SuretyOut])
def api_my_sureties(db: Session = Depends(get_db), auth: AuthContext = Depends(require_user)):
    try:
        return list_sureties(db, user_id=auth.user_id)
    except Exception as exc:
        return server_error("List", exc)


@router.get("/allsureties", response_model=list[SuretyOut])
def api_all_sureties(
    search: str = "",
    police_station: str = Query(default="", alias="policeStation"),
    year: str = "",
    month: str = "",
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    criteria = SuretyCriteria(
        search=search,
        police_station=police_station,
        year=year,
        month=month,
        search_aadhar=True,
    )
    try:
        return filter_sureties(list_sureties(db), criteria)
    except Exception as exc:
        return server_error("List", exc)
