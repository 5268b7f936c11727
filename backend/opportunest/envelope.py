from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse

from .observability.context import get_request_id
from .settings import get_settings

_DEFAULT_MESSAGES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Validation Failed",
    503: "Service Unavailable",
}


def _default_message(status_code: int) -> str:
    if status_code in _DEFAULT_MESSAGES:
        return _DEFAULT_MESSAGES[status_code]
    return "Internal Server Error" if status_code >= 500 else "Error"


def _request_id(request: Request) -> str | None:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    if rid:
        return str(rid)
    rid = get_request_id()
    if rid:
        return rid
    hdr = request.headers.get("x-request-id") or request.headers.get("X-Request-Id")
    return str(hdr) if hdr else None


def ok(data: Any = None, **extra: Any) -> dict[str, Any]:
    """Success envelope: ``{"success": true, "data": ..., **extra}``."""
    payload: dict[str, Any] = {"success": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return payload


def outcome(success: bool, *, message: str | None = None) -> dict[str, Any]:
    # Soft failures (zero matched documents) keep HTTP 200 and report via the flag.
    payload: dict[str, Any] = {"success": bool(success)}
    if message:
        payload["message"] = message
    return payload


def failure_payload(
    *,
    request: Request,
    status_code: int,
    message: str | None = None,
    errors: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": False,
        "message": message or _default_message(int(status_code)),
        "status": int(status_code),
    }

    rid = _request_id(request)
    if rid:
        payload["requestId"] = rid

    if errors:
        payload["errors"] = errors

    return payload


def failure_response(
    *,
    request: Request,
    status_code: int,
    message: str | None = None,
    errors: list[dict[str, Any]] | None = None,
) -> ORJSONResponse:
    settings = get_settings()

    # Never leak internal details in production for server errors.
    safe_message = message
    if int(status_code) >= 500 and settings.is_production:
        safe_message = None

    return ORJSONResponse(
        status_code=int(status_code),
        content=failure_payload(
            request=request,
            status_code=int(status_code),
            message=safe_message,
            errors=errors,
        ),
    )
