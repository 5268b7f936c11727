from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.logging import get_logger


def _user_email(request: Request) -> str | None:
    user = getattr(request.state, "user", None)
    email = getattr(user, "email", None)
    return str(email) if email else None


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000.0, 2)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    One structured line per request. Method, path and request id come from
    the bound log context; this adds status, timing, client and caller.
    """

    def __init__(self, app, *, exclude_paths: set[str] | None = None):
        super().__init__(app)
        self._exclude = frozenset(exclude_paths or ())
        self._log = get_logger("access")

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self._exclude:
            return await call_next(request)

        start = time.perf_counter()
        client_ip = request.client.host if request.client else None

        try:
            response = await call_next(request)
        except Exception:
            self._log.exception(
                "request_error",
                duration_ms=_elapsed_ms(start),
                client_ip=client_ip,
                user_email=_user_email(request),
            )
            raise

        status_code = int(response.status_code)
        emit = self._log.info
        if status_code >= 500:
            emit = self._log.error
        elif status_code >= 400:
            emit = self._log.warning
        emit(
            "request",
            status_code=status_code,
            duration_ms=_elapsed_ms(start),
            client_ip=client_ip,
            user_email=_user_email(request),
        )
        return response
