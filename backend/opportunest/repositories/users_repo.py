from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..db.mongo.collection import USERS, get_collection
from ..db.mongo.documents import parse_object_id
from ..domain.roles import role_for_email
from ..settings import settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def get_user_by_email(email: str | None) -> dict[str, Any] | None:
    em = str(email or "").strip()
    if not em:
        return None
    return get_collection(USERS).find_one({"email": em})


def get_user_by_id(user_id: str) -> dict[str, Any] | None:
    return get_collection(USERS).find_one({"_id": parse_object_id(user_id)})


def sync_user(
    *,
    uid: str,
    email: str,
    name: str | None,
    picture: str | None,
) -> dict[str, Any] | None:
    """
    Upsert the user for a verified identity.

    Role is computed from the static allowlist only on insert; later syncs
    refresh display fields and lastLogin and leave role untouched.
    """
    em = str(email or "").strip()
    if not em:
        return None

    ts = now_utc()
    role = role_for_email(
        em,
        admin_email=settings.admin_email,
        moderator_email=settings.moderator_email,
    )
    update = {
        "$setOnInsert": {
            "firebaseUid": uid,
            "email": em,
            "role": role,
            "createdAt": ts,
        },
        "$set": {
            "name": name or "N/A",
            "photoURL": picture or None,
            "lastLogin": ts,
        },
    }
    return get_collection(USERS).find_one_and_update({"email": em}, update, upsert=True)


def list_users(*, role: str | None = None) -> list[dict[str, Any]]:
    filt: dict[str, Any] = {}
    if role:
        filt["role"] = role
    return get_collection(USERS).find(filt)


def set_user_role(*, user_id: str, role: str) -> bool:
    res = get_collection(USERS).update_one(
        {"_id": parse_object_id(user_id)}, {"$set": {"role": role}}
    )
    return res.matched_count > 0


def delete_user(*, user_id: str) -> bool:
    return get_collection(USERS).delete_one({"_id": parse_object_id(user_id)}) > 0
