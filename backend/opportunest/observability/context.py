from __future__ import annotations

from contextvars import ContextVar, Token

import structlog

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return request_id_var.get()


def bind_request(*, request_id: str, http_method: str, path: str) -> Token:
    """
    Make the request id visible to everything logged while the request runs.

    The id goes into its own contextvar and into structlog's contextvars,
    which the logging pipeline merges into every event.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        http_method=http_method,
        path=path,
    )
    return request_id_var.set(request_id)


def unbind_request(token: Token) -> None:
    request_id_var.reset(token)
    structlog.contextvars.clear_contextvars()
