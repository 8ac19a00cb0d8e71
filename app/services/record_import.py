"""Spreadsheet imports for user accounts and surety filings.

Rows are keyed by normalised header (see ``spreadsheet.normalize_header``).
Each import validates every row, skips the bad ones with a warning and
inserts the rest in one transaction, the same contract as the hardware
batch import.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..core.errors import BatchImportError, InvalidPayloadError
from ..crud.sureties import build_surety
from ..crud.users import build_user, get_user_by_email
from ..models.user import User
from ..schemas.surety import SuretyCreate
from ..schemas.user import UserCreate
from .hardware_import import ImportResult

LOGGER = logging.getLogger(__name__)

USER_HEADERS: dict[str, str] = {
    "fullname": "full_name",
    "name": "full_name",
    "mobileno": "mobile_no",
    "mobile": "mobile_no",
    "dob": "dob",
    "dateofbirth": "dob",
    "village": "village",
    "courtstation": "village",
    "emailid": "email_id",
    "email": "email_id",
    "password": "password",
    "role": "role",
}

SURETY_HEADERS: dict[str, str] = {
    "suretyname": "shurity_name",
    "shurityname": "shurity_name",
    "address": "address",
    "aadharno": "aadhar_no",
    "aadhar": "aadhar_no",
    "policestation": "police_station",
    "casefirno": "case_fir_no",
    "firno": "case_fir_no",
    "actname": "act_name",
    "act": "act_name",
    "section": "section",
    "accusedname": "accused_name",
    "accusedaddress": "accused_address",
    "suretyamount": "shurity_amount",
    "shurityamount": "shurity_amount",
    "amount": "shurity_amount",
    "suretydate": "date_of_surety",
    "dateofsurety": "date_of_surety",
    "date": "date_of_surety",
    "courtcity": "court_city",
}


def map_row(row: Mapping[str, Any], headers: Mapping[str, str]) -> dict[str, Any]:
    """Translate one spreadsheet row to schema field names, ignoring unknown columns."""

    mapped: dict[str, Any] = {}
    for key, value in row.items():
        field = headers.get(key)
        if field and field not in mapped and value not in (None, ""):
            mapped[field] = value
    return mapped


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    return str(errors[0].get("msg", "invalid")).removeprefix("Value error, ")


def _require_rows(rows: Any, kind: str) -> list[Mapping[str, Any]]:
    if not isinstance(rows, list) or not rows:
        raise InvalidPayloadError(f"Import file contains no {kind} rows.")
    return rows


def _commit_batch(db: Session, objects: list[Any], kind: str, skipped: int) -> ImportResult:
    if not objects:
        db.commit()
        return ImportResult(
            msg="File processed, but no valid records were inserted after filtering.",
            count=0,
            skipped=skipped,
        )
    try:
        db.add_all(objects)
        db.flush()
        db.commit()
    except Exception as exc:
        db.rollback()
        LOGGER.exception("%s.import.failed", kind)
        raise BatchImportError(str(exc)) from exc
    count = len(objects)
    LOGGER.info("%s.import.completed", kind, extra={"extra_data": {"count": count, "skipped": skipped}})
    return ImportResult(
        msg=f"Successfully imported {count} {kind} records.",
        count=count,
        skipped=skipped,
        created=True,
    )


def import_users(db: Session, rows: Iterable[Mapping[str, Any]]) -> ImportResult:
    rows = _require_rows(rows, "user")
    users: list[User] = []
    seen: set[str] = set()
    skipped = 0
    for index, row in enumerate(rows):
        try:
            payload = UserCreate.model_validate(map_row(row, USER_HEADERS))
        except ValidationError as exc:
            skipped += 1
            LOGGER.warning("user.import.skipped", extra={"extra_data": {"row": index, "reason": _first_error(exc)}})
            continue
        email = payload.email_id.strip().lower()
        if email in seen or get_user_by_email(db, email) is not None:
            skipped += 1
            LOGGER.warning("user.import.skipped", extra={"extra_data": {"row": index, "reason": "duplicate email"}})
            continue
        seen.add(email)
        users.append(build_user(payload.model_dump()))
    return _commit_batch(db, users, "user", skipped)


def import_sureties(db: Session, rows: Iterable[Mapping[str, Any]], acting_user: User | None) -> ImportResult:
    rows = _require_rows(rows, "surety")
    sureties = []
    skipped = 0
    for index, row in enumerate(rows):
        try:
            payload = SuretyCreate.model_validate(map_row(row, SURETY_HEADERS))
        except ValidationError as exc:
            skipped += 1
            LOGGER.warning("surety.import.skipped", extra={"extra_data": {"row": index, "reason": _first_error(exc)}})
            continue
        sureties.append(build_surety(payload.model_dump(), acting_user))
    return _commit_batch(db, sureties, "surety", skipped)
