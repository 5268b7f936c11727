from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from ..auth.dependencies import requires
from ..db.mongo.documents import serialize_doc, serialize_docs
from ..domain.roles import Capability
from ..envelope import ok, outcome
from ..observability.logging import get_logger
from ..repositories.scholarships_repo import (
    create_scholarship,
    delete_scholarship,
    get_scholarship,
    list_scholarships,
    search_scholarships,
    top_scholarships,
    update_scholarship,
)

router = APIRouter(tags=["scholarships"])
log = get_logger("scholarships")


class ScholarshipFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scholarshipName: str = Field(min_length=1)
    universityName: str = Field(min_length=1)
    universityImage: str | None = None
    universityCountry: str = Field(min_length=1)
    universityCity: str = Field(min_length=1)
    universityWorldRank: int | None = None
    subjectCategory: str = Field(min_length=1)
    scholarshipCategory: str = Field(min_length=1)
    degree: str = Field(min_length=1)
    applicationFees: float = Field(ge=0)
    serviceCharge: float = Field(default=0, ge=0)
    tuitionFees: float | None = Field(default=None, ge=0)
    applicationDeadline: str = Field(min_length=1)
    scholarshipDescription: str | None = None


# Fields a posting must always carry; an explicit null on PATCH leaves them as is.
_REQUIRED_FIELDS: frozenset[str] = frozenset(
    name for name, field in ScholarshipFields.model_fields.items() if field.is_required()
)


class ScholarshipPatch(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = Field(default=None, alias="_id")
    scholarshipName: str | None = None
    universityName: str | None = None
    universityImage: str | None = None
    universityCountry: str | None = None
    universityCity: str | None = None
    universityWorldRank: int | None = None
    subjectCategory: str | None = None
    scholarshipCategory: str | None = None
    degree: str | None = None
    applicationFees: float | None = Field(default=None, ge=0)
    serviceCharge: float | None = Field(default=None, ge=0)
    tuitionFees: float | None = Field(default=None, ge=0)
    applicationDeadline: str | None = None
    scholarshipDescription: str | None = None


@router.post("/scholarships", status_code=201)
def create(
    body: ScholarshipFields,
    moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR)),
):
    inserted_id = create_scholarship(data=body.model_dump(), posted_by=str(moderator.get("email")))
    log.info("scholarship_created", scholarship_id=str(inserted_id), by=moderator.get("email"))
    return {"success": True, "insertedId": str(inserted_id)}


@router.get("/scholarships-admin")
def admin_list(_moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR))):
    return ok(serialize_docs(list_scholarships()))


@router.get("/scholarships-top")
def top():
    return ok(serialize_docs(top_scholarships()))


@router.get("/scholarships")
def search(
    search: str = Query(default=""),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
):
    result = search_scholarships(search=search, page=page, limit=limit)
    return {"success": True, "total": result.total, "data": serialize_docs(result.items)}


@router.get("/scholarships/{scholarship_id}")
def get_one(scholarship_id: str):
    doc = get_scholarship(scholarship_id)
    return {"success": doc is not None, "data": serialize_doc(doc)}


@router.patch("/scholarships/{scholarship_id}")
def update(
    scholarship_id: str,
    body: ScholarshipPatch,
    moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR)),
):
    if body.id is not None and body.id != scholarship_id:
        raise HTTPException(status_code=400, detail="Scholarship id cannot be changed.")

    updates = {
        k: v
        for k, v in body.model_dump(exclude_unset=True, exclude={"id"}).items()
        if v is not None or k not in _REQUIRED_FIELDS
    }
    updated = update_scholarship(scholarship_id=scholarship_id, updates=updates)
    log.info("scholarship_updated", scholarship_id=scholarship_id, by=moderator.get("email"), updated=updated)
    return outcome(updated)


@router.delete("/scholarships/{scholarship_id}")
def delete(
    scholarship_id: str,
    moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR)),
):
    deleted = delete_scholarship(scholarship_id=scholarship_id)
    log.info("scholarship_deleted", scholarship_id=scholarship_id, by=moderator.get("email"), deleted=deleted)
    return outcome(deleted)
