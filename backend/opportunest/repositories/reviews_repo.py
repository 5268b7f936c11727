from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..db.mongo.collection import REVIEWS, SCHOLARSHIPS, get_collection
from ..db.mongo.documents import parse_object_id


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def all_reviews_pipeline() -> list[dict[str, Any]]:
    return [
        {
            "$lookup": {
                "from": SCHOLARSHIPS,
                "localField": "scholarship_id",
                "foreignField": "_id",
                "as": "scholarshipDetails",
            }
        },
        {"$unwind": "$scholarshipDetails"},
        {
            "$project": {
                "scholarship_id": 1,
                "reviewerName": 1,
                "reviewerEmail": 1,
                "reviewerImage": 1,
                "reviewDate": 1,
                "ratingPoint": 1,
                "reviewerComments": 1,
                "universityName": "$scholarshipDetails.universityName",
                "scholarshipName": "$scholarshipDetails.scholarshipName",
                "subjectCategory": "$scholarshipDetails.subjectCategory",
            }
        },
    ]


def create_review(
    *,
    scholarship_id: str,
    rating: int,
    comments: str,
    reviewer_email: str,
    reviewer_name: str | None,
    reviewer_image: str | None,
    scholarship_name: str | None = None,
    university_name: str | None = None,
) -> Any:
    doc: dict[str, Any] = {
        "scholarship_id": parse_object_id(scholarship_id, field="scholarship id"),
        "ratingPoint": int(rating),
        "reviewerComments": comments,
        "reviewerEmail": reviewer_email,
        "reviewerName": reviewer_name,
        "reviewerImage": reviewer_image,
        "reviewDate": now_utc(),
    }
    if scholarship_name:
        doc["scholarshipName"] = scholarship_name
    if university_name:
        doc["universityName"] = university_name
    return get_collection(REVIEWS).insert_one(doc)


def list_reviews_for_scholarship(scholarship_id: str) -> list[dict[str, Any]]:
    oid = parse_object_id(scholarship_id, field="scholarship id")
    return get_collection(REVIEWS).find({"scholarship_id": oid})


def list_my_reviews(*, reviewer_email: str) -> list[dict[str, Any]]:
    return get_collection(REVIEWS).find({"reviewerEmail": reviewer_email})


def list_all_reviews() -> list[dict[str, Any]]:
    return get_collection(REVIEWS).aggregate(all_reviews_pipeline())


def _owned(review_id: str, reviewer_email: str) -> dict[str, Any]:
    # Ownership is part of the filter: another reviewer's document never matches.
    return {"_id": parse_object_id(review_id), "reviewerEmail": reviewer_email}


def update_own_review(*, review_id: str, reviewer_email: str, rating: int, comments: str) -> bool:
    res = get_collection(REVIEWS).update_one(
        _owned(review_id, reviewer_email),
        {
            "$set": {
                "ratingPoint": int(rating),
                "reviewerComments": comments,
                "reviewDate": now_utc(),
            }
        },
    )
    return res.matched_count > 0


def delete_own_review(*, review_id: str, reviewer_email: str) -> bool:
    return get_collection(REVIEWS).delete_one(_owned(review_id, reviewer_email)) > 0


def delete_review(*, review_id: str) -> bool:
    return get_collection(REVIEWS).delete_one({"_id": parse_object_id(review_id)}) > 0
