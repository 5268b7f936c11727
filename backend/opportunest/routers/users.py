from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..auth.dependencies import current_identity, requires
from ..auth.firebase import VerifiedUser
from ..db.mongo.documents import serialize_doc, serialize_docs
from ..domain.roles import ROLES, Capability, Role
from ..envelope import ok, outcome
from ..observability.logging import get_logger
from ..repositories.users_repo import (
    delete_user,
    get_user_by_id,
    list_users,
    set_user_role,
    sync_user,
)

router = APIRouter(tags=["users"])
log = get_logger("users")


class ChangeRoleRequest(BaseModel):
    newRole: Role


@router.post("/sync-user")
def sync(identity: VerifiedUser = Depends(current_identity)):
    user = sync_user(
        uid=identity.uid,
        email=str(identity.email),
        name=identity.name,
        picture=identity.picture,
    )
    log.info("user_synced", email=identity.email, role=(user or {}).get("role"))
    return {"success": True, "user": serialize_doc(user)}


@router.get("/admin/users")
def admin_list_users(
    role: str | None = Query(default=None),
    _admin: dict[str, Any] = Depends(requires(Capability.ADMIN)),
):
    # A blank ?role= means no filter.
    wanted = (role or "").strip() or None
    if wanted is not None and wanted not in ROLES:
        raise HTTPException(status_code=422, detail=f"Invalid role: {wanted}")
    return ok(serialize_docs(list_users(role=wanted)))


@router.patch("/admin/users/{user_id}/role")
def admin_change_role(
    user_id: str,
    body: ChangeRoleRequest,
    admin: dict[str, Any] = Depends(requires(Capability.ADMIN)),
):
    target = get_user_by_id(user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    if target.get("email") == admin.get("email"):
        raise HTTPException(status_code=400, detail="Admin cannot change their own role.")

    changed = set_user_role(user_id=user_id, role=body.newRole)
    log.info("user_role_changed", target=target.get("email"), role=body.newRole, by=admin.get("email"))
    return outcome(changed)


@router.delete("/admin/users/{user_id}")
def admin_delete_user(
    user_id: str,
    admin: dict[str, Any] = Depends(requires(Capability.ADMIN)),
):
    target = get_user_by_id(user_id)
    if not target:
        return outcome(False, message="User not found")
    if target.get("email") == admin.get("email"):
        raise HTTPException(status_code=400, detail="Admin cannot delete their own account.")

    deleted = delete_user(user_id=user_id)
    log.info("user_deleted", target=target.get("email"), by=admin.get("email"), deleted=deleted)
    return outcome(deleted)
