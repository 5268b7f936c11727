from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..auth.dependencies import requires
from ..db.mongo.documents import serialize_doc
from ..domain.roles import Capability
from ..envelope import ok
from ..repositories.stats_repo import admin_stats

router = APIRouter(tags=["admin"])


@router.get("/admin/stats")
def stats(_admin: dict[str, Any] = Depends(requires(Capability.ADMIN))):
    return ok(serialize_doc(admin_stats()))
