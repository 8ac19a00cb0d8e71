"""User account CRUD helpers."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..core.security import hash_password, verify_password
from ..models.user import ROLE_ADMIN, User

LOGGER = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _clean_email(value: str | None) -> str:
    return (value or "").strip().lower()


def list_users(db: Session) -> list[User]:
    stmt = select(User).order_by(desc(User.created_at), desc(User.id))
    return db.execute(stmt).scalars().all()


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email_id: str) -> User | None:
    email = _clean_email(email_id)
    if not email:
        return None
    stmt = select(User).where(func.lower(User.email_id) == email)
    return db.execute(stmt).scalars().first()


def build_user(payload: dict) -> User:
    """Create an unsaved ``User``; a missing password leaves the account unable to log in."""

    full_name = (payload.get("full_name") or "").strip()
    if not full_name:
        raise ValueError("fullName is required")
    email = _clean_email(payload.get("email_id"))
    if not email:
        raise ValueError("emailId is required")
    password = payload.get("password")
    return User(
        full_name=full_name,
        dob=payload.get("dob"),
        mobile_no=(payload.get("mobile_no") or None),
        village=(payload.get("village") or "").strip() or None,
        email_id=email,
        password_hash=hash_password(password) if password else None,
        role=payload.get("role") or "user",
        created_at=_utcnow(),
    )


def create_user(db: Session, payload: dict) -> User:
    if get_user_by_email(db, payload.get("email_id")):
        raise ValueError("A user with this email already exists")
    user = build_user(payload)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, user: User, payload: dict) -> User:
    if "email_id" in payload:
        email = _clean_email(payload.get("email_id"))
        if not email:
            raise ValueError("emailId is required")
        existing = get_user_by_email(db, email)
        if existing is not None and existing.id != user.id:
            raise ValueError("A user with this email already exists")
        user.email_id = email
    if "full_name" in payload:
        full_name = (payload.get("full_name") or "").strip()
        if not full_name:
            raise ValueError("fullName is required")
        user.full_name = full_name
    if payload.get("password"):
        user.password_hash = hash_password(payload["password"])
    if "village" in payload:
        user.village = (payload.get("village") or "").strip() or None
    for field in ("dob", "mobile_no", "role"):
        if field in payload and payload[field] is not None:
            setattr(user, field, payload[field])
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> None:
    db.delete(user)
    db.commit()


def authenticate(db: Session, email_id: str, password: str) -> User | None:
    user = get_user_by_email(db, email_id)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def ensure_admin(db: Session, email_id: str, password: str, full_name: str) -> User | None:
    """Create the bootstrap admin when no admin account exists yet."""

    if not email_id or not password:
        return None
    stmt = select(User).where(User.role == ROLE_ADMIN)
    if db.execute(stmt).scalars().first() is not None:
        return None
    admin = create_user(
        db,
        {"full_name": full_name, "email_id": email_id, "password": password, "role": ROLE_ADMIN},
    )
    LOGGER.info("users.bootstrap_admin_created", extra={"extra_data": {"user_id": admin.id}})
    return admin
