"""CRUD helpers for surety (bail) filings."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..models.surety import Surety
from ..models.user import User


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def resolve_police_station(user: User | None, requested: str | None) -> str | None:
    """A user with a home village always files under that village."""

    if user is not None and user.village:
        return user.village
    return requested or None


def list_sureties(db: Session, user_id: int | None = None) -> list[Surety]:
    stmt = select(Surety).order_by(desc(Surety.date_of_surety), desc(Surety.id))
    if user_id is not None:
        stmt = stmt.where(Surety.user_id == user_id)
    return db.execute(stmt).scalars().all()


def get_surety(db: Session, surety_id: int) -> Surety | None:
    return db.get(Surety, surety_id)


def build_surety(payload: dict, user: User | None, *, pin_station: bool = False) -> Surety:
    """Create an unsaved ``Surety`` from a validated payload.

    ``user`` is recorded as the filer. With ``pin_station`` the filer's home
    village replaces the requested police station; only a user filing their
    own surety is pinned, admins choose the station freely.
    """

    data = dict(payload)
    requested = data.get("police_station") or None
    data["police_station"] = resolve_police_station(user, requested) if pin_station else requested
    now = _utcnow()
    return Surety(
        **data,
        user_id=user.id if user is not None else None,
        created_at=now,
        updated_at=now,
    )


def create_surety(db: Session, payload: dict, user: User | None, *, pin_station: bool = False) -> Surety:
    surety = build_surety(payload, user, pin_station=pin_station)
    db.add(surety)
    db.commit()
    db.refresh(surety)
    return surety


def update_surety(db: Session, surety: Surety, payload: dict) -> Surety:
    for key, value in payload.items():
        if not hasattr(surety, key):
            continue
        if key == "shurity_name" and not (value or "").strip():
            raise ValueError("shurityName is required")
        setattr(surety, key, value)
    surety.updated_at = _utcnow()
    db.commit()
    db.refresh(surety)
    return surety


def delete_surety(db: Session, surety: Surety) -> None:
    db.delete(surety)
    db.commit()
