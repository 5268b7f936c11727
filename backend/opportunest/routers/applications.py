from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from ..auth.dependencies import current_identity, requires
from ..auth.firebase import VerifiedUser
from ..db.mongo.documents import serialize_docs
from ..domain.applications import ApplicationStatus
from ..domain.roles import Capability
from ..envelope import ok, outcome
from ..observability.logging import get_logger
from ..repositories.applications_repo import (
    cancel_own_application,
    create_application,
    list_all_applications,
    list_my_applications,
    set_application_feedback,
    set_application_status,
    update_own_application,
)
from ..repositories.scholarships_repo import scholarship_exists

router = APIRouter(tags=["applications"])
log = get_logger("applications")


class ApplicationRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scholarshipId: str = Field(min_length=1)
    applicantName: str | None = None
    applicantId: str | None = None
    applicantPhone: str = Field(min_length=1)
    applicantAddress: str = Field(min_length=1)
    applicantGender: str = Field(min_length=1)
    applyingDegree: str = Field(min_length=1)
    sscResult: float
    hscResult: float
    studyGap: str | None = None
    applicantPhoto: str = Field(min_length=1)


class ApplicationEditRequest(BaseModel):
    # status/feedback/scholarshipId are not accepted from applicants.
    model_config = ConfigDict(extra="ignore")

    applicantName: str | None = None
    applicantPhone: str | None = None
    applicantAddress: str | None = None
    applicantGender: str | None = None
    applyingDegree: str | None = None
    sscResult: float | None = None
    hscResult: float | None = None
    studyGap: str | None = None
    applicantPhoto: str | None = None


class StatusRequest(BaseModel):
    status: ApplicationStatus


class FeedbackRequest(BaseModel):
    feedback: str | None = None


@router.post("/applications", status_code=201)
def apply(body: ApplicationRequest, identity: VerifiedUser = Depends(current_identity)):
    if not scholarship_exists(body.scholarshipId):
        raise HTTPException(status_code=404, detail="Scholarship not found")

    inserted_id = create_application(data=body.model_dump(), applicant_email=str(identity.email))
    log.info("application_created", application_id=str(inserted_id), scholarship_id=body.scholarshipId)
    return {"success": True, "insertedId": str(inserted_id)}


@router.get("/my-applications")
def my_applications(identity: VerifiedUser = Depends(current_identity)):
    return ok(serialize_docs(list_my_applications(applicant_email=str(identity.email))))


@router.patch("/applications/{application_id}")
def edit(
    application_id: str,
    body: ApplicationEditRequest,
    identity: VerifiedUser = Depends(current_identity),
):
    result = update_own_application(
        application_id=application_id,
        applicant_email=str(identity.email),
        updates=body.model_dump(exclude_unset=True),
    )
    if result.blocked_status is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Application can no longer be edited (status: {result.blocked_status}).",
        )
    return outcome(result.success)


@router.delete("/applications/{application_id}")
def cancel(application_id: str, identity: VerifiedUser = Depends(current_identity)):
    deleted = cancel_own_application(application_id=application_id, applicant_email=str(identity.email))
    log.info("application_cancelled", application_id=application_id, deleted=deleted)
    return outcome(deleted)


@router.get("/admin/applications")
def admin_list(
    # Unknown or blank sort modes fall back to newest-applied first.
    sort: str | None = Query(default=None),
    _moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR)),
):
    return ok(serialize_docs(list_all_applications(sort=sort)))


@router.patch("/admin/applications/{application_id}/status")
def admin_set_status(
    application_id: str,
    body: StatusRequest,
    moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR)),
):
    updated = set_application_status(application_id=application_id, status=body.status)
    log.info(
        "application_status_changed",
        application_id=application_id,
        status=body.status,
        by=moderator.get("email"),
        updated=updated,
    )
    return outcome(updated)


@router.patch("/admin/applications/{application_id}/feedback")
def admin_set_feedback(
    application_id: str,
    body: FeedbackRequest,
    moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR)),
):
    feedback = (body.feedback or "").strip() or None
    updated = set_application_feedback(application_id=application_id, feedback=feedback)
    log.info("application_feedback_set", application_id=application_id, by=moderator.get("email"), updated=updated)
    return outcome(updated)
