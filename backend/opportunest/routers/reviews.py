from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from ..auth.dependencies import current_identity, requires
from ..auth.firebase import VerifiedUser
from ..db.mongo.documents import serialize_docs
from ..domain.roles import Capability
from ..envelope import ok, outcome
from ..observability.logging import get_logger
from ..repositories.reviews_repo import (
    create_review,
    delete_own_review,
    delete_review,
    list_all_reviews,
    list_my_reviews,
    list_reviews_for_scholarship,
    update_own_review,
)
from ..repositories.scholarships_repo import scholarship_exists

router = APIRouter(tags=["reviews"])
log = get_logger("reviews")


class ReviewRequest(BaseModel):
    # Reviewer identity comes from the verified token, never the body.
    model_config = ConfigDict(extra="ignore")

    scholarship_id: str = Field(min_length=1)
    ratingPoint: int = Field(ge=1, le=5)
    reviewerComments: str = Field(min_length=1)
    scholarshipName: str | None = None
    universityName: str | None = None


class ReviewEditRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ratingPoint: int = Field(ge=1, le=5)
    reviewerComments: str = Field(min_length=1)


@router.get("/reviews")
@router.get("/admin/reviews")
def all_reviews(_moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR))):
    return ok(serialize_docs(list_all_reviews()))


@router.get("/reviews/{scholarship_id}")
def scholarship_reviews(scholarship_id: str):
    return ok(serialize_docs(list_reviews_for_scholarship(scholarship_id)))


@router.post("/reviews", status_code=201)
def add_review(body: ReviewRequest, identity: VerifiedUser = Depends(current_identity)):
    if not scholarship_exists(body.scholarship_id):
        raise HTTPException(status_code=404, detail="Scholarship not found")

    inserted_id = create_review(
        scholarship_id=body.scholarship_id,
        rating=body.ratingPoint,
        comments=body.reviewerComments,
        reviewer_email=str(identity.email),
        reviewer_name=identity.name,
        reviewer_image=identity.picture,
        scholarship_name=body.scholarshipName,
        university_name=body.universityName,
    )
    log.info("review_created", review_id=str(inserted_id), scholarship_id=body.scholarship_id)
    return {"success": True, "insertedId": str(inserted_id)}


@router.get("/my-reviews")
def my_reviews(identity: VerifiedUser = Depends(current_identity)):
    return ok(serialize_docs(list_my_reviews(reviewer_email=str(identity.email))))


@router.patch("/reviews/{review_id}")
def edit_review(
    review_id: str,
    body: ReviewEditRequest,
    identity: VerifiedUser = Depends(current_identity),
):
    updated = update_own_review(
        review_id=review_id,
        reviewer_email=str(identity.email),
        rating=body.ratingPoint,
        comments=body.reviewerComments,
    )
    return outcome(updated)


@router.delete("/reviews/{review_id}")
def remove_review(review_id: str, identity: VerifiedUser = Depends(current_identity)):
    deleted = delete_own_review(review_id=review_id, reviewer_email=str(identity.email))
    return outcome(deleted)


@router.delete("/admin/reviews/{review_id}")
def admin_remove_review(
    review_id: str,
    moderator: dict[str, Any] = Depends(requires(Capability.MODERATOR)),
):
    deleted = delete_review(review_id=review_id)
    log.info("review_removed", review_id=review_id, by=moderator.get("email"), deleted=deleted)
    return outcome(deleted)
