"""End-to-end checks through the FastAPI app with an in-memory database."""

import os
import sys
from io import BytesIO
from pathlib import Path

import openpyxl
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("DB_URL", "sqlite://")

from app.main import app
from app.db.session import Base, get_db
from app.core.security import issue_token_pair
from app.crud.users import create_user
from app.models.hardware import HardwareRecord


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def client(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _auth(user) -> dict[str, str]:
    token = issue_token_pair(user.id, user.role).access_token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def clerk(db):
    return create_user(
        db,
        {"full_name": "Court Clerk", "email_id": "clerk@court.example", "password": "clerk-pass", "village": "Rampur"},
    )


@pytest.fixture()
def admin(db):
    return create_user(
        db,
        {"full_name": "Registrar", "email_id": "admin@court.example", "password": "admin-pass", "role": "admin"},
    )


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_login_returns_tokens_and_role(client, clerk):
    res = client.post("/api/auth/login", json={"emailId": "clerk@court.example", "password": "clerk-pass"})

    assert res.status_code == 200
    body = res.json()
    assert body["role"] == "user"
    assert body["token_type"] == "bearer"

    me = client.get("/api/user/me", headers={"x-auth-token": body["access_token"]})
    assert me.status_code == 200
    assert me.json()["emailId"] == "clerk@court.example"


def test_login_with_wrong_password(client, clerk):
    res = client.post("/api/auth/login", json={"emailId": "clerk@court.example", "password": "nope"})

    assert res.status_code == 400
    assert res.json() == {"msg": "Invalid credentials"}


def test_refresh_issues_new_access_token(client, clerk):
    refresh = issue_token_pair(clerk.id, clerk.role).refresh_token

    res = client.post("/api/auth/refresh", json={"refresh_token": refresh})

    assert res.status_code == 200
    assert res.json()["role"] == "user"


def test_me_never_returns_password_hash(client, clerk):
    body = client.get("/api/user/me", headers=_auth(clerk)).json()

    assert body["_id"] == clerk.id
    assert body["fullName"] == "Court Clerk"
    assert "password" not in body
    assert "passwordHash" not in body


def test_missing_or_bad_token_is_unauthorized(client):
    res = client.get("/api/user/hardware")
    assert res.status_code == 401
    assert res.json() == {"msg": "No token, authorization denied"}

    res = client.get("/api/user/hardware", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_refresh_token_is_not_an_access_token(client, clerk):
    refresh = issue_token_pair(clerk.id, clerk.role).refresh_token
    res = client.get("/api/user/me", headers={"Authorization": f"Bearer {refresh}"})
    assert res.status_code == 401


def test_admin_routes_need_admin_role(client, clerk):
    res = client.get("/api/admin/users", headers=_auth(clerk))

    assert res.status_code == 403
    assert res.json() == {"msg": "Access denied. Admins only."}


def test_import_scenario(client, clerk, db):
    payload = [
        {
            "hardwareItems": [{"hardwareName": "Router", "serialNumber": "R1", "company": "X"}],
            "employeeAllocated": "J. Doe",
            "deliveryDate": "01/06/2024",
        }
    ]

    res = client.post("/api/user/hardware/import", json=payload, headers=_auth(clerk))

    assert res.status_code == 201
    body = res.json()
    assert body["msg"] == "Successfully imported 1 hardware records."
    assert body["count"] == 1

    mine = client.get("/api/user/hardware/mine", headers=_auth(clerk)).json()
    assert len(mine) == 1
    assert mine[0]["deliveryDate"] == "2024-06-01"
    assert mine[0]["employeeAllocated"] == "J. Doe"
    assert mine[0]["items"][0]["itemName"] == "Router"
    assert mine[0]["items"][0]["serialNo"] == "R1"


def test_import_with_nothing_to_insert_is_200(client, clerk):
    res = client.post("/api/user/hardware/import", json=[{"hardwareItems": []}], headers=_auth(clerk))

    assert res.status_code == 200
    assert res.json()["count"] == 0


@pytest.mark.parametrize("payload", [[], {"hardwareItems": []}])
def test_import_requires_non_empty_array(client, clerk, payload):
    res = client.post("/api/user/hardware/import", json=payload, headers=_auth(clerk))

    assert res.status_code == 400
    assert "non-empty array" in res.json()["msg"]


def test_import_for_deleted_user_is_not_found(client):
    token = issue_token_pair(4242, "user").access_token
    res = client.post(
        "/api/user/hardware/import",
        json=[{"hardwareItems": [{"hardwareName": "Router"}]}],
        headers={"Authorization": f"Bearer {token}"},
    )

    assert res.status_code == 404
    assert res.json() == {"msg": "User not found"}


def test_failing_batch_reports_zero_and_writes_nothing(client, clerk, db):
    payload = [
        {"hardwareItems": [{"hardwareName": "Router"}]},
        {"hardwareItems": [{"serialNumber": "missing-name"}]},
    ]

    res = client.post("/api/user/hardware/import", json=payload, headers=_auth(clerk))

    assert res.status_code == 500
    body = res.json()
    assert body["count"] == 0
    assert body["msg"].startswith("Server failed to process the batch.")
    assert body["error"]
    assert db.execute(select(HardwareRecord)).scalars().all() == []


def test_create_update_and_delete_hardware(client, clerk, admin):
    created = client.post(
        "/api/user/hardware",
        json={
            "courtName": "District Court",
            "employeeAllocated": "J. Doe",
            "lotNumber": "L-9",
            "hardwareItems": [
                {"hardwareName": "Laptop", "serialNumber": "L1", "company": "Dell"},
                {"hardwareName": "Printer", "serialNumber": "P1", "company": "HP"},
            ],
        },
        headers=_auth(clerk),
    )
    assert created.status_code == 201
    record = created.json()
    assert record["lotNumber"] == "L-9"
    laptop_id = record["items"][0]["_id"]
    printer_id = record["items"][1]["_id"]

    rows = client.get("/api/user/hardware", headers=_auth(clerk)).json()
    assert {row["hardwareName"] for row in rows} == {"Laptop", "Printer"}
    assert all(row["parentId"] == record["_id"] for row in rows)

    updated = client.put(
        f"/api/user/hardware/{record['_id']}",
        json={"courtName": "Sessions Court", "hardwareItems": [{"_id": laptop_id, "serialNumber": "L2"}]},
        headers=_auth(clerk),
    )
    assert updated.status_code == 200
    assert updated.json()["hardware"]["courtName"] == "Sessions Court"
    assert updated.json()["hardware"]["items"][0]["serialNo"] == "L2"

    missing = client.put(
        f"/api/user/hardware/{record['_id']}",
        json={"hardwareItems": [{"_id": 99999, "serialNumber": "X"}]},
        headers=_auth(clerk),
    )
    assert missing.status_code == 404

    pulled = client.delete(f"/api/user/hardware/{record['_id']}/{printer_id}", headers=_auth(clerk))
    assert pulled.status_code == 200
    assert [item["_id"] for item in pulled.json()["hardware"]["items"]] == [laptop_id]

    assert client.delete("/api/user/hardware/99999/1", headers=_auth(clerk)).status_code == 404
    assert client.delete(f"/api/user/hardware/{record['_id']}", headers=_auth(clerk)).status_code == 403
    assert client.delete(f"/api/user/hardware/{record['_id']}", headers=_auth(admin)).status_code == 200
    assert client.get("/api/user/hardware", headers=_auth(clerk)).json() == []


def test_create_with_structured_employee_is_server_error(client, clerk):
    res = client.post(
        "/api/user/hardware",
        json={"employeeAllocated": {"_id": 3}, "hardwareItems": [{"hardwareName": "Laptop"}]},
        headers=_auth(clerk),
    )

    assert res.status_code == 500
    assert res.json()["msg"].startswith("Server Error on Create: employeeAllocated must be a text label")


def test_hardware_export_is_xlsx(client, clerk):
    res = client.get("/api/user/hardware/export", headers=_auth(clerk))

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("application/vnd.openxmlformats")
    assert "Hardware_List_" in res.headers["content-disposition"]


def test_user_surety_flow_pins_village(client, clerk):
    res = client.post(
        "/api/user/sureties",
        json={"shurityName": "Ravi", "policeStation": "Kotwali", "aadharNo": "111122223333", "dateOfSurety": "2024-03-05"},
        headers=_auth(clerk),
    )
    assert res.status_code == 201
    assert res.json()["policeStation"] == "Rampur"
    assert res.json()["user"] == clerk.id

    mine = client.get("/api/user/sureties", headers=_auth(clerk)).json()
    assert [s["shurityName"] for s in mine] == ["Ravi"]

    found = client.get(
        "/api/user/allsureties",
        params={"search": "11112222", "year": "2024", "month": "03"},
        headers=_auth(clerk),
    ).json()
    assert [s["shurityName"] for s in found] == ["Ravi"]


def test_bad_aadhar_is_a_400_with_message(client, clerk):
    res = client.post(
        "/api/user/sureties",
        json={"shurityName": "Ravi", "aadharNo": "1234"},
        headers=_auth(clerk),
    )

    assert res.status_code == 400
    assert res.json()["msg"] == "Aadhar number must be 12 digits."


def test_admin_manages_users(client, admin):
    created = client.post(
        "/api/admin/users",
        json={"fullName": "New Clerk", "emailId": "new@court.example", "password": "secret1", "mobileNo": "9999"},
        headers=_auth(admin),
    )
    assert created.status_code == 201
    user_id = created.json()["_id"]

    duplicate = client.post(
        "/api/admin/users",
        json={"fullName": "Copy", "emailId": "NEW@court.example"},
        headers=_auth(admin),
    )
    assert duplicate.status_code == 400

    listed = client.get("/api/admin/users", params={"q": "9999"}, headers=_auth(admin)).json()
    assert [u["_id"] for u in listed] == [user_id]

    updated = client.put(f"/api/admin/users/{user_id}", json={"village": "Rampur"}, headers=_auth(admin))
    assert updated.json()["village"] == "Rampur"

    assert client.delete(f"/api/admin/users/{admin.id}", headers=_auth(admin)).status_code == 400
    assert client.delete(f"/api/admin/users/{user_id}", headers=_auth(admin)).json() == {
        "msg": "User deleted successfully"
    }


def test_admin_imports_users_from_workbook(client, admin):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["Full Name", "Email ID", "Village"])
    ws.append(["Asha", "asha@court.example", "Rampur"])
    ws.append(["", "nobody@court.example", ""])
    buffer = BytesIO()
    wb.save(buffer)

    res = client.post(
        "/api/admin/users/import",
        files={"file": ("users.xlsx", buffer.getvalue(), "application/octet-stream")},
        headers=_auth(admin),
    )

    assert res.status_code == 201
    assert res.json() == {"msg": "Successfully imported 1 user records.", "count": 1, "skipped": 1}


def test_admin_surety_crud_and_export(client, admin):
    created = client.post(
        "/api/admin/sureties",
        json={"shurityName": "Sita", "policeStation": "Kotwali", "actName": "bns"},
        headers=_auth(admin),
    )
    assert created.status_code == 201
    surety_id = created.json()["_id"]
    assert created.json()["actName"] == "BNS"

    updated = client.put(f"/api/admin/sureties/{surety_id}", json={"section": "303"}, headers=_auth(admin))
    assert updated.json()["section"] == "303"
    assert updated.json()["policeStation"] == "Kotwali"

    listed = client.get("/api/admin/sureties", params={"policeStation": "Kotwali"}, headers=_auth(admin)).json()
    assert [s["_id"] for s in listed] == [surety_id]

    export = client.get("/api/admin/sureties/export", headers=_auth(admin))
    assert export.status_code == 200
    ws = openpyxl.load_workbook(BytesIO(export.content)).active
    assert ws.cell(row=2, column=1).value == "Sita"

    assert client.delete(f"/api/admin/sureties/{surety_id}", headers=_auth(admin)).status_code == 200
    assert client.get("/api/admin/sureties", headers=_auth(admin)).json() == []


def test_flat_rows_keep_item_values_when_headers_reuse_item_names(client, clerk):
    payload = [
        {
            "hardwareName": "Row label",
            "serialNumber": "ROW-SN",
            "parentId": 999,
            "hardwareItems": [{"hardwareName": "Laptop", "serialNumber": "SN1", "company": "Acme"}],
        }
    ]
    assert client.post("/api/user/hardware/import", json=payload, headers=_auth(clerk)).status_code == 201

    (row,) = client.get("/api/user/hardware", headers=_auth(clerk)).json()
    assert row["hardwareName"] == "Laptop"
    assert row["serialNumber"] == "SN1"

    res = client.delete(f"/api/user/hardware/{row['parentId']}/{row['_id']}", headers=_auth(clerk))
    assert res.status_code == 200
    assert res.json()["hardware"]["items"] == []


def test_admin_surety_keeps_requested_station(client, db):
    admin = create_user(
        db,
        {"full_name": "Registrar", "email_id": "reg@court.example", "village": "Rampur", "role": "admin"},
    )

    res = client.post(
        "/api/admin/sureties",
        json={"shurityName": "S", "policeStation": "Sonpur"},
        headers=_auth(admin),
    )

    assert res.status_code == 201
    assert res.json()["policeStation"] == "Sonpur"
    assert res.json()["user"] == admin.id


def test_admin_surety_import_keeps_sheet_station(client, db):
    admin = create_user(
        db,
        {"full_name": "Registrar", "email_id": "reg@court.example", "village": "Rampur", "role": "admin"},
    )
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["Surety Name", "Police Station"])
    ws.append(["Ravi", "Sonpur"])
    buffer = BytesIO()
    wb.save(buffer)

    res = client.post(
        "/api/admin/sureties/import",
        files={"file": ("sureties.xlsx", buffer.getvalue(), "application/octet-stream")},
        headers=_auth(admin),
    )

    assert res.status_code == 201
    listed = client.get("/api/admin/sureties", headers=_auth(admin)).json()
    assert [s["policeStation"] for s in listed] == ["Sonpur"]


def _storage_failure(*args, **kwargs):
    raise RuntimeError("database is locked")


@pytest.mark.parametrize(
    "module, name, method, path, operation",
    [
        ("app.routers.api_hardware", "list_records", "get", "/api/user/hardware/mine", "List"),
        ("app.routers.api_hardware", "delete_hardware_item", "delete", "/api/user/hardware/1/1", "Delete"),
        ("app.routers.api_user", "list_sureties", "get", "/api/user/allsureties", "List"),
    ],
)
def test_storage_errors_use_message_envelope(client, clerk, monkeypatch, module, name, method, path, operation):
    monkeypatch.setattr(f"{module}.{name}", _storage_failure)

    res = getattr(client, method)(path, headers=_auth(clerk))

    assert res.status_code == 500
    assert res.json() == {"msg": f"Server Error on {operation}: database is locked"}


def test_admin_user_delete_failure_uses_message_envelope(client, admin, db, monkeypatch):
    target = create_user(db, {"full_name": "Former Clerk", "email_id": "former@court.example"})
    monkeypatch.setattr("app.routers.api_admin.delete_user", _storage_failure)

    res = client.delete(f"/api/admin/users/{target.id}", headers=_auth(admin))

    assert res.status_code == 500
    assert res.json() == {"msg": "Server Error on Delete: database is locked"}


def test_admin_surety_delete_failure_uses_message_envelope(client, admin, monkeypatch):
    created = client.post("/api/admin/sureties", json={"shurityName": "Ravi"}, headers=_auth(admin)).json()
    monkeypatch.setattr("app.routers.api_admin.delete_surety", _storage_failure)

    res = client.delete(f"/api/admin/sureties/{created['_id']}", headers=_auth(admin))

    assert res.status_code == 500
    assert res.json() == {"msg": "Server Error on Delete: database is locked"}
    assert len(client.get("/api/admin/sureties", headers=_auth(admin)).json()) == 1
