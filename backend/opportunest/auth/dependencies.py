"""
Request-scoped identity and role requirements.

Routes declare what they need with FastAPI dependencies:

    @router.get("/admin/stats")
    def stats(user: dict = Depends(requires(Capability.ADMIN))): ...

`current_identity` verifies the bearer token once per request and stores the
identity on ``request.state.user``. `requires(...)` re-reads the persisted
user by email on every request, so role changes take effect immediately.
"""

from __future__ import annotations

from typing import Any, Callable

from fastapi import Depends, HTTPException, Request

from ..domain.roles import Capability, role_satisfies
from ..observability.logging import get_logger
from ..repositories.users_repo import get_user_by_email
from .firebase import (
    IdentityProviderError,
    TokenVerificationError,
    VerifiedUser,
    verify_bearer_token,
)

log = get_logger("auth")

_DENIED_MESSAGES = {
    Capability.MODERATOR: "Requires moderator role",
    Capability.ADMIN: "Requires admin role",
}


def _bearer_token(request: Request) -> str:
    auth = request.headers.get("authorization") or request.headers.get("Authorization")
    if not auth:
        raise HTTPException(status_code=401, detail="Unauthorized")

    parts = str(auth).split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return parts[1].strip()


def current_identity(request: Request) -> VerifiedUser:
    cached = getattr(request.state, "user", None)
    if isinstance(cached, VerifiedUser):
        return cached

    token = _bearer_token(request)
    try:
        user = verify_bearer_token(token)
    except TokenVerificationError as e:
        log.info("auth_denied", path=request.url.path, reason=str(e)[:120])
        raise HTTPException(status_code=403, detail="Forbidden")
    except IdentityProviderError as e:
        log.error("auth_provider_error", path=request.url.path, error=str(e))
        raise HTTPException(status_code=500, detail="Authentication is unavailable")

    if not user.email:
        log.info("auth_denied", path=request.url.path, reason="missing email claim")
        raise HTTPException(status_code=403, detail="Forbidden")

    request.state.user = user
    return user


def requires(capability: Capability) -> Callable[..., dict[str, Any]]:
    """Dependency factory: the stored user must hold `capability`."""

    def _check(request: Request, identity: VerifiedUser = Depends(current_identity)) -> dict[str, Any]:
        stored = get_user_by_email(identity.email)
        role = stored.get("role") if stored else None
        if not stored or not role_satisfies(role, capability):
            log.info(
                "role_denied",
                path=request.url.path,
                required=capability.value,
                role=str(role) if role else None,
            )
            raise HTTPException(status_code=403, detail=_DENIED_MESSAGES[capability])
        return stored

    return _check
