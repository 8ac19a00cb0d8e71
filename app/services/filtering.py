"""Pure filters over surety and user lists.

The dashboards re-run these on every change of the filter controls, so they
take plain lists and return new lists without touching the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from ..core.dates import safe_date

MONTHS: tuple[tuple[str, str], ...] = (
    ("01", "January"), ("02", "February"), ("03", "March"), ("04", "April"),
    ("05", "May"), ("06", "June"), ("07", "July"), ("08", "August"),
    ("09", "September"), ("10", "October"), ("11", "November"), ("12", "December"),
)


@dataclass(frozen=True)
class SuretyCriteria:
    search: str = ""
    police_station: str = ""
    year: str = ""
    month: str = ""
    # The user dashboard also searches Aadhar numbers; the admin one does not.
    search_aadhar: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.search or self.police_station or self.year or self.month)


def available_years(today: date | None = None, span: int = 5) -> list[str]:
    """The current year followed by the previous ``span - 1`` years."""

    current = (today or date.today()).year
    return [str(current - offset) for offset in range(span)]


def _value(record: Any, key: str) -> Any:
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def year_month(value: Any) -> tuple[str | None, str | None]:
    if isinstance(value, str):
        value = safe_date(value)
    if not isinstance(value, date):
        return None, None
    return str(value.year), f"{value.month:02d}"


def _normalize_month(month: str) -> str:
    month = month.strip()
    return month.zfill(2) if month.isdigit() else month


def surety_matches(record: Any, criteria: SuretyCriteria) -> bool:
    term = criteria.search.strip().lower()
    if term:
        haystacks = [
            (_value(record, "shurity_name") or "").lower(),
            (_value(record, "case_fir_no") or "").lower(),
        ]
        if criteria.search_aadhar:
            haystacks.append(_value(record, "aadhar_no") or "")
        if not any(term in text for text in haystacks):
            return False

    if criteria.police_station and _value(record, "police_station") != criteria.police_station:
        return False

    if criteria.year or criteria.month:
        year, month = year_month(_value(record, "date_of_surety"))
        if criteria.year and year != criteria.year.strip():
            return False
        if criteria.month and month != _normalize_month(criteria.month):
            return False
    return True


def filter_sureties(records: Iterable[Any], criteria: SuretyCriteria) -> list[Any]:
    """Keep the records that satisfy every non-empty criterion."""

    records = list(records)
    if criteria.is_empty:
        return records
    return [record for record in records if surety_matches(record, criteria)]


def filter_users(users: Iterable[Any], term: str) -> list[Any]:
    """Substring match on mobile number, date of birth, name or email."""

    users = list(users)
    needle = (term or "").strip().lower()
    if not needle:
        return users

    def _matches(user: Any) -> bool:
        dob = _value(user, "dob")
        fields = (
            _value(user, "mobile_no"),
            dob.isoformat() if isinstance(dob, date) else dob,
            _value(user, "full_name"),
            _value(user, "email_id"),
        )
        return any(needle in str(field).lower() for field in fields if field)

    return [user for user in users if _matches(user)]
