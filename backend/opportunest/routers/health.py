from __future__ import annotations

from fastapi import APIRouter

from ..settings import settings

router = APIRouter()


@router.get("/", tags=["health"])
def health():
    return {
        "success": True,
        "message": "Opportunest server is running",
        "version": "1.0.0",
        "environment": settings.normalized_environment,
        "mongodb": "configured" if settings.mongo_uri else "missing",
    }
