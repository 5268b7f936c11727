from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx
from cachetools import TTLCache
from jose import JWTError, jwt

from ..settings import settings

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)


class TokenVerificationError(ValueError):
    """The bearer token is not a valid ID token for this project."""


class IdentityProviderError(RuntimeError):
    """Verification could not run (missing config or signing keys unavailable)."""


@dataclass
class VerifiedUser:
    uid: str
    email: str | None
    name: str | None
    picture: str | None
    claims: dict[str, Any]


_JWKS_CACHE: TTLCache[str, dict[str, Any]] = TTLCache(maxsize=4, ttl=60 * 60)


def _issuer() -> str:
    if not settings.firebase_project_id:
        raise IdentityProviderError("FIREBASE_PROJECT_ID is not set")
    return f"https://securetoken.google.com/{settings.firebase_project_id}"


def _get_jwks() -> dict[str, Any]:
    url = FIREBASE_JWKS_URL
    cached = _JWKS_CACHE.get(url)
    if cached:
        return cached

    try:
        with httpx.Client(timeout=10.0) as client:
            resp = client.get(url)
            resp.raise_for_status()
            jwks = resp.json()
    except httpx.HTTPError as e:
        raise IdentityProviderError("unable to fetch signing keys") from e

    _JWKS_CACHE[url] = jwks
    return jwks


def verify_bearer_token(token: str) -> VerifiedUser:
    if not token:
        raise TokenVerificationError("missing token")

    issuer = _issuer()
    jwks = _get_jwks()

    try:
        claims = jwt.decode(
            token,
            jwks,
            algorithms=["RS256"],
            audience=settings.firebase_project_id,
            issuer=issuer,
            options={"verify_aud": True, "verify_iss": True},
        )
    except JWTError as e:
        raise TokenVerificationError(str(e) or "invalid token") from e

    # jwt.decode already verifies exp; auth_time must not be in the future either.
    now = int(time.time())
    exp = claims.get("exp")
    if exp and int(exp) < now:
        raise TokenVerificationError("token expired")
    auth_time = claims.get("auth_time")
    if auth_time and int(auth_time) > now + 300:
        raise TokenVerificationError("invalid auth_time")

    uid = str(claims.get("sub") or claims.get("user_id") or "").strip()
    if not uid:
        raise TokenVerificationError("missing sub")

    email = claims.get("email")
    if email is not None:
        email = str(email).strip() or None

    name = str(claims.get("name") or "").strip() or None
    picture = str(claims.get("picture") or "").strip() or None

    return VerifiedUser(uid=uid, email=email, name=name, picture=picture, claims=claims)
