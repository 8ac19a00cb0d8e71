"""Excel (.xlsx) export and import helpers built on openpyxl."""

from __future__ import annotations

import re
import zipfile
from datetime import date, datetime
from io import BytesIO
from typing import Any, Iterable, Sequence

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from ..core.dates import format_display_date

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SURETY_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Surety Name", "shurity_name"),
    ("Address", "address"),
    ("Aadhar No.", "aadhar_no"),
    ("Police Station", "police_station"),
    ("Case/FIR No.", "case_fir_no"),
    ("Act Name", "act_name"),
    ("Section", "section"),
    ("Accused Name", "accused_name"),
    ("Accused Address", "accused_address"),
    ("Surety Amount", "shurity_amount"),
    ("Surety Date", "date_of_surety"),
    ("Court City", "court_city"),
    ("Assigned To", "assigned_to_user"),
)

USER_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Full Name", "full_name"),
    ("Mobile No.", "mobile_no"),
    ("DOB", "dob"),
    ("Village", "village"),
    ("Email ID", "email_id"),
)

HARDWARE_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Hardware Name", "hardware_name"),
    ("Serial Number", "serial_number"),
    ("Company", "company"),
    ("Court Name", "court_name"),
    ("Company Name", "company_name"),
    ("Delivery Date", "delivery_date"),
    ("Installation Date", "installation_date"),
    ("Dead Stock Reg. Sr. No.", "dead_stock_reg_sr_no"),
    ("Dead Stock Book Page No.", "dead_stock_book_page_no"),
    ("Source", "source"),
    ("Employee Allocated", "employee_allocated"),
)

_HEADER_FILL = PatternFill(start_color="3730A3", end_color="3730A3", fill_type="solid")
_HEADER_FONT = Font(bold=True, color="FFFFFF")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


class SpreadsheetError(ValueError):
    """The uploaded file is not a readable workbook."""


def _cell_value(record: Any, key: str) -> Any:
    value = record.get(key) if isinstance(record, dict) else getattr(record, key, None)
    if isinstance(value, date):
        return format_display_date(value)
    return "" if value is None else value


def build_workbook(
    records: Iterable[Any],
    columns: Sequence[tuple[str, str]],
    sheet_title: str,
) -> bytes:
    """Write ``records`` as one sheet with a styled, frozen header row."""

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_title[:31]

    widths = [len(header) for header, _ in columns]
    for col_num, (header, _) in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_num, value=header)
        cell.fill = _HEADER_FILL
        cell.font = _HEADER_FONT
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for row_num, record in enumerate(records, 2):
        for col_num, (_, key) in enumerate(columns, 1):
            value = _cell_value(record, key)
            ws.cell(row=row_num, column=col_num, value=value)
            widths[col_num - 1] = max(widths[col_num - 1], len(str(value)))

    for col_num, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col_num)].width = min(width + 2, 60)
    ws.freeze_panes = "A2"

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_sureties(records: Iterable[Any]) -> bytes:
    return build_workbook(records, SURETY_COLUMNS, "Surety List")


def export_users(records: Iterable[Any]) -> bytes:
    return build_workbook(records, USER_COLUMNS, "User List")


def export_hardware(rows: Iterable[Any]) -> bytes:
    return build_workbook(rows, HARDWARE_COLUMNS, "Hardware List")


def export_filename(prefix: str, today: date | None = None) -> str:
    return f"{prefix}_{(today or date.today()).isoformat()}.xlsx"


def normalize_header(value: Any) -> str:
    """``"Case/FIR No."`` -> ``"casefirno"`` so header spelling does not matter."""

    if value is None:
        return ""
    return _NON_ALNUM_RE.sub("", str(value).strip().lower())


def _read_cell(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        # Excel stores whole numbers (Aadhar, mobile) as floats.
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


def read_rows(raw_bytes: bytes) -> list[dict[str, Any]]:
    """Read the first sheet; the header row becomes normalised dict keys.

    Completely empty rows are dropped.
    """

    try:
        wb = openpyxl.load_workbook(BytesIO(raw_bytes), data_only=True, read_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
        raise SpreadsheetError("Uploaded file is not a readable .xlsx workbook") from exc

    try:
        ws = wb[wb.sheetnames[0]]
        rows = ws.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return []
        headers = [normalize_header(h) for h in header_row]
        records: list[dict[str, Any]] = []
        for row in rows:
            values = [_read_cell(v) for v in row]
            if all(v in (None, "") for v in values):
                continue
            records.append(
                {header: value for header, value in zip(headers, values) if header}
            )
        return records
    finally:
        wb.close()
