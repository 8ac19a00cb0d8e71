#!/usr/bin/env python3
"""
hardware_import.py

Purpose:
  Push a spreadsheet (or JSON file) of hardware deliveries into the registry API.
  - Rows that share the same delivery header (court, company, dates, employee,
    dead stock register entries) are grouped into ONE hardware record.
  - Each row contributes one line item (hardware name, serial number, company).
  - The grouped records are sent in a single POST to the batch import endpoint.

API:
  Base: http://localhost:5000/api
  Resource: /user/hardware/import
  Auth: Authorization: Bearer <access token>
  Import: POST /user/hardware/import     -> body: [ {record}, {record}, ... ]

Auth precedence:
  1) --token <value> (CLI)
  2) env SURETY_API_TOKEN

Examples:
  python hardware_import.py deliveries.xlsx --token YOUR_TOKEN
  python hardware_import.py deliveries.json --base-url https://registry.example.org/api
  SURETY_API_TOKEN=YOUR_TOKEN python hardware_import.py deliveries.xlsx --dry-run

Exit codes:
  0 = success
  1 = handled application error
  2 = network/HTTP error
"""

from __future__ import annotations
import os
import re
import sys
import json
import argparse
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import openpyxl
import requests

DEFAULT_BASE_URL = "http://localhost:5000/api"
RESOURCE_PATH = "user/hardware/import"
TOKEN_ENV = "SURETY_API_TOKEN"

# Normalised spreadsheet header -> API field name.
HEADER_COLUMNS: Dict[str, str] = {
    "courtname": "courtName",
    "court": "courtName",
    "companyname": "companyName",
    "deliverydate": "deliveryDate",
    "installationdate": "installationDate",
    "employeeallocated": "employeeAllocated",
    "employee": "employeeAllocated",
    "deadstockregsrno": "deadStockRegSrNo",
    "deadstockbookpageno": "deadStockBookPageNo",
}
ITEM_COLUMNS: Dict[str, str] = {
    "hardwarename": "hardwareName",
    "itemname": "hardwareName",
    "serialnumber": "serialNumber",
    "serialno": "serialNumber",
    "company": "company",
}
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Batch import hardware deliveries into the registry API.")
    p.add_argument("path", help="Path to an .xlsx workbook or a .json file with hardware rows.")
    p.add_argument("--base-url", default=DEFAULT_BASE_URL,
                   help=f"Base API URL (default: {DEFAULT_BASE_URL})")
    p.add_argument("--token", default=None,
                   help=f"Access token. Overrides env {TOKEN_ENV}.")
    p.add_argument("--source", default=None,
                   help="Optional source label stored on every record (defaults to the file name).")
    p.add_argument("--timeout", type=float, default=60.0,
                   help="HTTP timeout in seconds (default: 60)")
    p.add_argument("--no-verify-tls", action="store_true",
                   help="Disable TLS verification (use only for testing).")
    p.add_argument("--dry-run", action="store_true",
                   help="Print the grouped payload instead of sending it.")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Verbose logging to stderr.")
    return p.parse_args(argv)


def resolve_token(cli_token: Optional[str]) -> Optional[str]:
    if cli_token:
        return cli_token
    return os.getenv(TOKEN_ENV) or None


def build_headers(token: Optional[str]) -> Dict[str, str]:
    headers = {"Accept": "application/json", "Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def vprint(enabled: bool, *args: Any) -> None:
    if enabled:
        print(*args, file=sys.stderr)


def _normalise(header: Any) -> str:
    if header is None:
        return ""
    return _NON_ALNUM_RE.sub("", str(header).strip().lower())


def _cell(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def read_xlsx_rows(path: Path) -> List[Dict[str, Any]]:
    wb = openpyxl.load_workbook(path, data_only=True, read_only=True)
    try:
        rows = wb[wb.sheetnames[0]].iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        keys = [_normalise(h) for h in header]
        out: List[Dict[str, Any]] = []
        for row in rows:
            values = [_cell(v) for v in row]
            if all(v is None for v in values):
                continue
            out.append({k: v for k, v in zip(keys, values) if k})
        return out
    finally:
        wb.close()


def read_json_rows(path: Path) -> List[Dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list in {path}, got: {type(data).__name__}")
    return [{_normalise(k): _cell(v) for k, v in row.items()} for row in data if isinstance(row, dict)]


def group_rows(rows: List[Dict[str, Any]], source: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Group flat rows into hardware records keyed by their delivery header.
    Rows without a hardware name still create the record but add no item.
    """
    records: Dict[Tuple[Any, ...], Dict[str, Any]] = {}
    for row in rows:
        header = {field: row.get(col) for col, field in HEADER_COLUMNS.items() if row.get(col) is not None}
        key = tuple(sorted(header.items()))
        record = records.get(key)
        if record is None:
            record = dict(header)
            if source:
                record["source"] = source
            record["hardwareItems"] = []
            records[key] = record
        item = {field: row.get(col) for col, field in ITEM_COLUMNS.items() if row.get(col) is not None}
        if item.get("hardwareName"):
            record["hardwareItems"].append(item)
    return list(records.values())


def api_import_hardware(session: requests.Session, base_url: str, token: Optional[str],
                        records: List[Dict[str, Any]], timeout: float, verify_tls: bool,
                        verbose: bool) -> Dict[str, Any]:
    url = f"{base_url.rstrip('/')}/{RESOURCE_PATH}"
    vprint(verbose, f"POST {url} records={len(records)}")
    r = session.post(url, headers=build_headers(token), json=records, timeout=timeout, verify=verify_tls)
    if r.status_code not in (200, 201):
        try:
            detail = json.dumps(r.json(), indent=2)
        except ValueError:
            detail = r.text
        raise requests.HTTPError(f"Import failed ({r.status_code}): {detail}", response=r)
    return r.json()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    token = resolve_token(args.token)
    if not token and not args.dry_run:
        print(f"ERROR: No access token supplied (use --token or env {TOKEN_ENV}).", file=sys.stderr)
        return 1

    path = Path(args.path)
    try:
        if path.suffix.lower() == ".json":
            rows = read_json_rows(path)
        else:
            rows = read_xlsx_rows(path)
        records = group_rows(rows, source=args.source or path.name)
        vprint(args.verbose, f"Read {len(rows)} rows into {len(records)} records from {path}")

        if args.dry_run:
            print(json.dumps(records, indent=2))
            return 0

        session = requests.Session()
        result = api_import_hardware(
            session=session,
            base_url=args.base_url,
            token=token,
            records=records,
            timeout=args.timeout,
            verify_tls=not args.no_verify_tls,
            verbose=args.verbose,
        )
        print(json.dumps({"status": "imported", "records": len(records), "result": result}, indent=2))
        return 0

    except requests.exceptions.RequestException as e:
        print(f"NETWORK_ERROR: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
