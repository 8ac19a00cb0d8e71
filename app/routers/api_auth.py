from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.security import decode_token, issue_token_pair, refresh_access_token
from ..crud.users import authenticate
from ..db.session import get_db
from ..schemas.auth import LoginRequest, RefreshRequest, TokenResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])
LOGGER = logging.getLogger(__name__)


@router.post("/login", response_model=TokenResponse, summary="Exchange email and password for JWTs")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email_id, payload.password)
    if user is None:
        LOGGER.warning("auth.login_failed")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")
    pair = issue_token_pair(user.id, user.role)
    return TokenResponse(**pair.model_dump(), role=user.role)


@router.post("/refresh", response_model=TokenResponse, summary="Refresh access token")
def refresh_token(payload: RefreshRequest):
    try:
        pair = refresh_access_token(payload.refresh_token)
        role = decode_token(pair.access_token).role
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return TokenResponse(**pair.model_dump(), role=role)
