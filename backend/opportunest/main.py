from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .db.mongo.errors import (
    StoreConflict,
    StoreError,
    StoreNotFound,
    StoreUnavailable,
    StoreValidation,
)
from .envelope import failure_response
from .middleware.access_log import AccessLogMiddleware
from .middleware.cors import build_allowed_origins
from .middleware.request_context import RequestContextMiddleware
from .observability.logging import configure_logging, get_logger
from .routers.admin import router as admin_router
from .routers.applications import router as applications_router
from .routers.health import router as health_router
from .routers.reviews import router as reviews_router
from .routers.scholarships import router as scholarships_router
from .routers.uploads import router as uploads_router
from .routers.users import router as users_router
from .settings import settings


def create_app() -> FastAPI:
    # Logging must be configured before the app starts handling requests.
    configure_logging(level="INFO")
    log = get_logger("startup")

    app = FastAPI(
        title="Opportunest Backend",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        redirect_slashes=False,
    )

    log.info("app_starting", settings=settings.to_log_safe_dict())

    # Middlewares (order matters; last added is outermost)
    app.add_middleware(AccessLogMiddleware, exclude_paths={"/"})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=build_allowed_origins(frontend_urls=settings.frontend_urls),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
        max_age=3000,
    )
    # Outermost: request context (request-id) wraps everything.
    app.add_middleware(RequestContextMiddleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StoreError, _store_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    # Routes
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(uploads_router)
    app.include_router(scholarships_router)
    app.include_router(applications_router)
    app.include_router(reviews_router)
    app.include_router(admin_router)

    return app


def _store_error_handler(request: Request, exc: StoreError) -> Response:
    # Map storage-layer errors to stable HTTP semantics.
    status_code = 500

    if isinstance(exc, StoreValidation):
        status_code = 400
    elif isinstance(exc, StoreNotFound):
        status_code = 404
    elif isinstance(exc, StoreConflict):
        status_code = 409
    elif isinstance(exc, StoreUnavailable):
        status_code = 503

    if status_code >= 500:
        get_logger("store").error(
            "store_error",
            operation=exc.operation,
            collection=exc.collection,
            error=str(exc.cause or exc)[:300],
        )

    return failure_response(request=request, status_code=status_code, message=str(exc))


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    status_code = int(getattr(exc, "status_code", 500) or 500)
    detail = getattr(exc, "detail", None)

    message: str | None = None
    if isinstance(detail, dict):
        msg = detail.get("message")
        if isinstance(msg, str) and msg.strip():
            message = msg.strip()
    elif detail is not None:
        message = str(detail)

    if status_code == 404:
        message = message or "Route not found"

    return failure_response(request=request, status_code=status_code, message=message)


def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors: list[dict[str, object]] = []
    for e in exc.errors():
        loc = e.get("loc") or ()
        loc_path = ".".join([str(x) for x in loc if x != "body"])
        errors.append(
            {
                "location": [str(x) for x in loc] if isinstance(loc, (list, tuple)) else [],
                "path": loc_path,
                "message": e.get("msg", "Invalid value"),
                "type": e.get("type"),
            }
        )
    return failure_response(
        request=request,
        status_code=422,
        message="Request validation failed",
        errors=errors,
    )


def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    # Full traceback goes to the logs; the response stays generic in production.
    log = get_logger("unhandled")
    rid = getattr(getattr(request, "state", None), "request_id", None)
    user = getattr(getattr(request, "state", None), "user", None)
    user_email = getattr(user, "email", None) if user else None
    log.exception(
        "unhandled_exception",
        request_id=str(rid) if rid else None,
        http_method=str(getattr(request, "method", "") or "").upper() or None,
        path=str(getattr(getattr(request, "url", None), "path", "") or ""),
        user_email=str(user_email) if user_email else None,
    )

    return failure_response(
        request=request,
        status_code=500,
        message=str(exc) if exc else None,
    )


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
