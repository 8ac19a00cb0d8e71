import os
import sys
from datetime import date
from pathlib import Path

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("DB_URL", "sqlite://")

from app.db.session import Base
from app.core.validation import aadhar_error, normalize_act_name
from app.crud.sureties import create_surety, list_sureties, update_surety
from app.crud.users import create_user
from app.schemas.surety import SuretyCreate, SuretyOut
from app.services.filtering import (
    SuretyCriteria,
    available_years,
    filter_sureties,
    filter_users,
)

# Ensure models are imported so metadata is populated
from app.models import surety as surety_model  # noqa: F401
from app.models import user as user_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.mark.parametrize(
    "value, message",
    [
        ("12345678901a", "Aadhar number must be numbers only."),
        ("1234 5678 9012", "Aadhar number must be numbers only."),
        ("1234567890123", "Aadhar number cannot exceed 12 digits."),
        ("12345", "Aadhar number must be 12 digits."),
    ],
)
def test_aadhar_errors(value, message):
    assert aadhar_error(value) == message


def test_aadhar_accepts_twelve_digits_or_blank():
    assert aadhar_error("123456789012") is None
    assert aadhar_error("") is None
    assert aadhar_error(None) is None


def test_surety_payload_rejects_bad_aadhar():
    with pytest.raises(ValidationError) as excinfo:
        SuretyCreate.model_validate({"shurityName": "Ravi", "aadharNo": "12AB"})
    assert "Aadhar number must be numbers only." in str(excinfo.value)


def test_surety_payload_cleans_fields():
    payload = SuretyCreate.model_validate(
        {
            "shurityName": "  Ravi Kumar ",
            "aadharNo": 123456789012,
            "actName": "  ipc ",
            "shurityAmount": "25,000",
            "dateOfSurety": "05/03/2024",
            "address": "   ",
        }
    )

    assert payload.shurity_name == "Ravi Kumar"
    assert payload.aadhar_no == "123456789012"
    assert payload.act_name == "IPC"
    assert payload.shurity_amount == 25000.0
    assert payload.date_of_surety == date(2024, 3, 5)
    assert payload.address is None


def test_unknown_act_names_are_kept():
    assert normalize_act_name("Arms  Act") == "Arms Act"
    assert normalize_act_name("bnss") == "BNSS"
    assert normalize_act_name("  ") is None


def test_village_pins_police_station(db_session):
    clerk = create_user(
        db_session,
        {"full_name": "Village Clerk", "email_id": "v@court.example", "village": "Rampur"},
    )
    payload = SuretyCreate.model_validate({"shurityName": "Ravi", "policeStation": "Elsewhere"}).model_dump()

    surety = create_surety(db_session, payload, clerk, pin_station=True)

    assert surety.police_station == "Rampur"
    assert surety.user_id == clerk.id
    assert surety.assigned_to_user == "Village Clerk"
    body = SuretyOut.model_validate(surety).model_dump(by_alias=True)
    assert body["user"] == clerk.id
    assert body["policeStation"] == "Rampur"


def test_user_without_village_chooses_station(db_session):
    clerk = create_user(db_session, {"full_name": "Town Clerk", "email_id": "t@court.example"})
    payload = SuretyCreate.model_validate({"shurityName": "Ravi", "policeStation": "Kotwali"}).model_dump()

    assert create_surety(db_session, payload, clerk, pin_station=True).police_station == "Kotwali"


def test_admin_filing_keeps_requested_station(db_session):
    admin = create_user(
        db_session,
        {"full_name": "Registrar", "email_id": "r@court.example", "village": "Rampur", "role": "admin"},
    )
    payload = SuretyCreate.model_validate({"shurityName": "Ravi", "policeStation": "Sonpur"}).model_dump()

    surety = create_surety(db_session, payload, admin)

    assert surety.police_station == "Sonpur"
    assert surety.user_id == admin.id


def test_update_changes_only_given_fields(db_session):
    surety = create_surety(
        db_session,
        SuretyCreate.model_validate({"shurityName": "Ravi", "section": "420"}).model_dump(),
        None,
    )

    updated = update_surety(db_session, surety, {"section": "406"})

    assert updated.section == "406"
    assert updated.shurity_name == "Ravi"
    assert [s.id for s in list_sureties(db_session)] == [surety.id]


def _sureties():
    return [
        {"shurity_name": "Ravi Kumar", "case_fir_no": "FIR-12/2024", "aadhar_no": "111122223333",
         "police_station": "Kotwali", "date_of_surety": date(2024, 3, 5)},
        {"shurity_name": "Sita Devi", "case_fir_no": "FIR-90/2023", "aadhar_no": "444455556666",
         "police_station": "Rampur", "date_of_surety": date(2023, 11, 20)},
        {"shurity_name": "Mohan Lal", "case_fir_no": "FIR-7/2024", "aadhar_no": None,
         "police_station": "Kotwali", "date_of_surety": None},
    ]


def test_empty_criteria_keep_everything():
    assert len(filter_sureties(_sureties(), SuretyCriteria())) == 3


def test_filter_by_station_year_and_month():
    records = _sureties()

    assert [r["shurity_name"] for r in filter_sureties(records, SuretyCriteria(police_station="Kotwali"))] == [
        "Ravi Kumar",
        "Mohan Lal",
    ]
    assert [r["shurity_name"] for r in filter_sureties(records, SuretyCriteria(year="2023"))] == ["Sita Devi"]
    assert [r["shurity_name"] for r in filter_sureties(records, SuretyCriteria(month="3"))] == ["Ravi Kumar"]
    assert filter_sureties(records, SuretyCriteria(year="2024", month="11")) == []


def test_search_matches_name_and_fir_and_optionally_aadhar():
    records = _sureties()

    assert [r["shurity_name"] for r in filter_sureties(records, SuretyCriteria(search="sita"))] == ["Sita Devi"]
    assert [r["shurity_name"] for r in filter_sureties(records, SuretyCriteria(search="fir-7"))] == ["Mohan Lal"]
    assert filter_sureties(records, SuretyCriteria(search="44445555")) == []
    assert [
        r["shurity_name"] for r in filter_sureties(records, SuretyCriteria(search="44445555", search_aadhar=True))
    ] == ["Sita Devi"]


def test_available_years():
    assert available_years(date(2025, 1, 1)) == ["2025", "2024", "2023", "2022", "2021"]


def test_filter_users_matches_contact_fields():
    users = [
        {"full_name": "Asha", "email_id": "asha@court.example", "mobile_no": "9876500000", "dob": date(1990, 4, 2)},
        {"full_name": "Bala", "email_id": "bala@court.example", "mobile_no": None, "dob": None},
    ]

    assert [u["full_name"] for u in filter_users(users, "98765")] == ["Asha"]
    assert [u["full_name"] for u in filter_users(users, "1990-04")] == ["Asha"]
    assert [u["full_name"] for u in filter_users(users, "BALA@")] == ["Bala"]
    assert len(filter_users(users, "")) == 2
