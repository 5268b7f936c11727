from __future__ import annotations

from enum import Enum
from typing import Literal

Role = Literal["user", "moderator", "admin"]

ROLES: tuple[str, ...] = ("user", "moderator", "admin")


class Capability(str, Enum):
    """Named role requirements a route can declare."""

    MODERATOR = "moderator"
    ADMIN = "admin"


_GRANTS: dict[Capability, frozenset[str]] = {
    Capability.MODERATOR: frozenset({"moderator", "admin"}),
    Capability.ADMIN: frozenset({"admin"}),
}


def role_satisfies(role: str | None, capability: Capability) -> bool:
    return str(role or "") in _GRANTS[capability]


def _norm_email(email: str | None) -> str:
    return str(email or "").strip()


def role_for_email(
    email: str | None,
    *,
    admin_email: str | None,
    moderator_email: str | None,
) -> str:
    """Role assigned when a user is first seen, from the static allowlist."""
    em = _norm_email(email)
    if em and em == _norm_email(admin_email):
        return "admin"
    if em and em == _norm_email(moderator_email):
        return "moderator"
    return "user"
