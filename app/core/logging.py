"""JSON logging for the registry.

Every line carries the request id and acting principal from the request
middleware. Values logged under an Aadhar key are masked down to their last
four digits before they reach the handler.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var

_AADHAR_KEYS = frozenset({"aadhar_no", "aadharNo", "aadhar"})
# uvicorn's access log duplicates the ``request.completed`` line.
_QUIET_LOGGERS = ("uvicorn.access",)


def mask_aadhar(value: Any) -> Any:
    if not isinstance(value, str) or len(value) <= 4:
        return value
    return "*" * (len(value) - 4) + value[-4:]


def _scrub(extra: Mapping[str, Any]) -> dict[str, Any]:
    return {key: mask_aadhar(value) if key in _AADHAR_KEYS else value for key, value in extra.items()}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record with request context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = request_id_ctx_var.get()
        if request_id:
            payload["request_id"] = request_id
        principal = principal_ctx_var.get()
        if principal:
            payload["principal"] = principal
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            payload.update(_scrub(extra))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install the JSON handler on the root logger at ``level`` (name or number)."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
