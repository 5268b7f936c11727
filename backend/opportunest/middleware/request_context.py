from __future__ import annotations

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.context import bind_request, unbind_request

# Inbound ids longer than this are replaced rather than echoed.
MAX_REQUEST_ID_LENGTH = 128


def _inbound_request_id(request: Request) -> str | None:
    raw = str(request.headers.get("x-request-id") or "").strip()
    if not raw or len(raw) > MAX_REQUEST_ID_LENGTH or not raw.isprintable():
        return None
    return raw


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Give every request an id: the client's X-Request-Id when usable, else a
    fresh UUIDv4. The id lands on ``request.state.request_id``, in the log
    context, and on the response header.
    """

    header_name = "X-Request-Id"

    async def dispatch(self, request: Request, call_next):
        request_id = _inbound_request_id(request) or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.user = None

        token = bind_request(
            request_id=request_id,
            http_method=request.method.upper(),
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        finally:
            unbind_request(token)

        response.headers[self.header_name] = request_id
        return response
