"""Date normalisation helpers explained for newcomers.

Spreadsheets exported from different offices write the same day in different
ways: ``2024-06-01``, ``01/06/2024``, ``1-6-2024`` or a full ISO timestamp sent
back by the browser. ``safe_date`` folds all of them into a ``datetime.date``
and answers ``None`` for anything it cannot read, so a single bad cell never
aborts an import.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

__all__ = ["safe_date", "format_display_date"]


_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Day first, as written in Indian court registers: D/M/YYYY or D-M-YYYY.
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")

# Last-chance formats tried in order once the strict shapes above fail.
_GENERIC_FORMATS = (
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%m/%d/%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%B %d, %Y",
    "%a %b %d %Y",
)


def _parse_iso_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_day_first(match: re.Match[str]) -> date | None:
    day, month, year = (int(part) for part in match.groups())
    try:
        built = date(year, month, day)
    except ValueError:
        return None
    # Reject anything that would not read back as the same calendar day.
    if (built.day, built.month, built.year) != (day, month, year):
        return None
    return built


def _parse_generic(value: str) -> date | None:
    candidate = value.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate).date()
    except ValueError:
        pass
    for fmt in _GENERIC_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    return None


def safe_date(value: Any) -> date | None:
    """Return a ``date`` for ``value`` or ``None`` when it cannot be read.

    * Strict ``YYYY-MM-DD`` strings are parsed directly and must be real days.
    * ``D/M/YYYY`` and ``D-M-YYYY`` are read day first. ``31/02/2024`` is
      rejected instead of rolling into March.
    * Everything else gets a generic parse (ISO timestamps, month names).
    * Empty strings and non-string values give ``None``.
    """

    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    if _ISO_DATE_RE.match(text):
        return _parse_iso_date(text)

    match = _DAY_FIRST_RE.match(text)
    if match:
        parsed = _parse_day_first(match)
        if parsed is not None:
            return parsed

    return _parse_generic(text)


def format_display_date(value: date | None) -> str:
    """Render a date the way court staff read it (DD/MM/YYYY)."""

    return value.strftime("%d/%m/%Y") if value else ""
