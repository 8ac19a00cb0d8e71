"""Field rules shared by the surety schemas and the spreadsheet importer."""

from __future__ import annotations

AADHAR_LENGTH = 12

ACT_OPTIONS: tuple[str, ...] = ("BNS", "IPC", "BNSS", "MOTOR V", "NI 138", "OTHER")


def aadhar_error(value: str | None) -> str | None:
    """Return a user-facing message when ``value`` is not a usable Aadhar number."""

    if not value:
        return None
    if not value.isdigit() or not value.isascii():
        return "Aadhar number must be numbers only."
    if len(value) > AADHAR_LENGTH:
        return f"Aadhar number cannot exceed {AADHAR_LENGTH} digits."
    if len(value) != AADHAR_LENGTH:
        return f"Aadhar number must be {AADHAR_LENGTH} digits."
    return None


def normalize_act_name(value: str | None) -> str | None:
    """Collapse whitespace and snap known Act names to their canonical spelling."""

    if value is None:
        return None
    cleaned = " ".join(str(value).split())
    if not cleaned:
        return None
    for option in ACT_OPTIONS:
        if option.lower() == cleaned.lower():
            return option
    return cleaned
