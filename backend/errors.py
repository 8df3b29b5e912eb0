"""
Exception handlers shared by the whole API.

Every error body has the shape {"detail": "..."}. Request validation errors
are reported as 400 with a readable message instead of FastAPI's default
422 error list.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields"


def describe_validation_errors(errors: Iterable[dict[str, Any]]) -> str:
    """Collapse pydantic error dicts into a single message."""
    messages: list[str] = []
    for error in errors:
        if error.get("type") == "missing":
            return MISSING_FIELDS_MESSAGE
        msg = str(error.get("msg", "Invalid value"))
        if error.get("type") == "value_error":
            # "Value error, Invalid coordinates" -> "Invalid coordinates"
            return msg.split(", ", 1)[-1]
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return messages[0] if messages else "Invalid request"


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": describe_validation_errors(exc.errors())},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unexpected error on %s %s", request.method, request.url.path
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
