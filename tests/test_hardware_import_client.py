import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
CLIENT_DIR = ROOT / "DesktopPythonInteractive"
if str(CLIENT_DIR) not in sys.path:
    sys.path.insert(0, str(CLIENT_DIR))

import hardware_import


def test_group_rows_merges_rows_sharing_a_delivery_header():
    rows = [
        {"courtname": "District Court", "deliverydate": "2024-06-01", "hardwarename": "Laptop", "serialnumber": "L1"},
        {"courtname": "District Court", "deliverydate": "2024-06-01", "hardwarename": "Printer", "serialnumber": "P1"},
        {"courtname": "Sessions Court", "deliverydate": "2024-06-02", "hardwarename": "Scanner", "company": "Canon"},
    ]

    records = hardware_import.group_rows(rows, source="deliveries.xlsx")

    assert len(records) == 2
    first, second = records
    assert first["courtName"] == "District Court"
    assert first["source"] == "deliveries.xlsx"
    assert [item["hardwareName"] for item in first["hardwareItems"]] == ["Laptop", "Printer"]
    assert second["hardwareItems"] == [{"hardwareName": "Scanner", "company": "Canon"}]


def test_group_rows_ignores_rows_without_a_hardware_name():
    records = hardware_import.group_rows([{"courtname": "District Court", "serialnumber": "X1"}])

    assert records == [{"courtName": "District Court", "hardwareItems": []}]


def test_missing_token_is_an_application_error(monkeypatch, tmp_path):
    monkeypatch.delenv(hardware_import.TOKEN_ENV, raising=False)
    source = tmp_path / "rows.json"
    source.write_text("[]", encoding="utf-8")

    assert hardware_import.main([str(source)]) == 1


def test_resolve_token_prefers_cli(monkeypatch):
    monkeypatch.setenv(hardware_import.TOKEN_ENV, "from-env")

    assert hardware_import.resolve_token("from-cli") == "from-cli"
    assert hardware_import.resolve_token(None) == "from-env"
