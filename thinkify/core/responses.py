"""
Response envelopes.

Every route answers ``{"status": bool, "message": str, "data": ...}`` on success
and ``{"status": false, "message": str, "error": ...}`` on failure.
"""
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from thinkify.core.config import settings
from thinkify.core.exceptions import ThinkifyError


def success_response(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"status": True, "message": message, "data": data}),
    )


def error_body(message: str, error: Any = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": False, "message": message}
    if error is not None:
        body["error"] = error
    body.update(extra)
    return body


def error_response(error: ThinkifyError) -> JSONResponse:
    """Convert exception to API error response format"""
    return JSONResponse(
        status_code=error.status_code,
        content=jsonable_encoder(error_body(error.message, **error.details)),
    )


def server_error(message: str, exc: Exception, fallback: str) -> JSONResponse:
    """500 envelope: exception detail in development, a fixed fallback otherwise"""
    detail: Optional[str] = str(exc) if settings.is_dev_mode() else fallback
    return JSONResponse(status_code=500, content=error_body(message, detail))
