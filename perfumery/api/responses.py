"""
Response envelope.

Every JSON body is ``{"success": bool, "message": str, "data": {...}}``;
errors carry only ``success`` and ``message`` (plus ``errors`` for
validation failures).
"""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(message: str | None = None, **data: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data:
        body["data"] = data
    return body


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "message": message, **extra}),
    )
