from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

LOGGER = logging.getLogger(__name__)


class InvalidPayloadError(ValueError):
    """The client sent a missing or malformed payload."""


class RecordNotFoundError(LookupError):
    """A parent record, line item or user does not exist."""


class BatchImportError(RuntimeError):
    """A batch import failed and its transaction was rolled back."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MessageEnvelope(JSONResponse):
    """JSON error body shaped as ``{"msg": ...}`` plus optional extra keys."""

    def __init__(
        self,
        *,
        status_code: int,
        msg: str,
        extra: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"msg": msg}
        if extra:
            payload.update(extra)
        super().__init__(payload, status_code=status_code, headers=headers)


def _first_error_message(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Validation failed"
    message = str(errors[0].get("msg") or "Validation failed")
    # pydantic prefixes custom ValueError messages.
    return message.removeprefix("Value error, ")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        msg = str(detail.get("msg") or "Error")
        extra = {k: v for k, v in detail.items() if k != "msg"}
    else:
        msg = detail if isinstance(detail, str) else "Error"
        extra = None
    return MessageEnvelope(status_code=exc.status_code, msg=msg, extra=extra, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = list(exc.errors())
    return MessageEnvelope(
        status_code=status.HTTP_400_BAD_REQUEST,
        msg=_first_error_message(errors),
        extra={"errors": [{"loc": list(e.get("loc", ())), "msg": str(e.get("msg", ""))} for e in errors]},
    )


async def invalid_payload_handler(request: Request, exc: InvalidPayloadError):
    return MessageEnvelope(status_code=status.HTTP_400_BAD_REQUEST, msg=str(exc))


async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return MessageEnvelope(status_code=status.HTTP_404_NOT_FOUND, msg=str(exc) or "Not found")


async def batch_import_handler(request: Request, exc: BatchImportError):
    return MessageEnvelope(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        msg=f"Server failed to process the batch. A data error may exist in the file. Error: {exc.message}",
        extra={"error": exc.message, "count": 0},
    )


def server_error(operation: str, exc: Exception) -> MessageEnvelope:
    """Log and report a storage failure raised while handling ``operation``."""

    LOGGER.exception("Server Error on %s", operation)
    return MessageEnvelope(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        msg=f"Server Error on {operation}: {exc}",
    )
