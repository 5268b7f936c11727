from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..db.mongo.collection import APPLICATIONS, SCHOLARSHIPS, get_collection
from ..db.mongo.documents import parse_object_id
from ..domain.applications import (
    APPLICATION_SORT_KEYS,
    DEFAULT_APPLICATION_SORT,
    EDITABLE_STATUSES,
    INITIAL_STATUS,
)

# Owned by the workflow: set at creation or by moderators only.
APPLICANT_PROTECTED_FIELDS: frozenset[str] = frozenset(
    {"_id", "applicantEmail", "scholarshipId", "status", "feedback", "applicationDate"}
)

# Applicant-supplied profile snapshot, echoed in the applicant's own view.
APPLICANT_PROFILE_FIELDS: tuple[str, ...] = (
    "applicantName",
    "applicantPhone",
    "applicantAddress",
    "applicantGender",
    "applyingDegree",
    "sscResult",
    "hscResult",
    "studyGap",
    "applicantPhoto",
)


@dataclass(frozen=True, slots=True)
class ApplicantEdit:
    success: bool
    # Current status when the edit was refused because the application left pending.
    blocked_status: str | None = None


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _scholarship_lookup() -> list[dict[str, Any]]:
    return [
        {
            "$lookup": {
                "from": SCHOLARSHIPS,
                "localField": "scholarshipId",
                "foreignField": "_id",
                "as": "scholarshipDetails",
            }
        },
        {"$unwind": "$scholarshipDetails"},
    ]


def my_applications_pipeline(applicant_email: str) -> list[dict[str, Any]]:
    project: dict[str, Any] = {
        "_id": 1,
        "applicationStatus": "$status",
        "feedback": "$feedback",
        "appliedDegree": "$applyingDegree",
        "applicationDate": 1,
        "universityName": "$scholarshipDetails.universityName",
        "scholarshipName": "$scholarshipDetails.scholarshipName",
        "universityAddress": {
            "$concat": [
                "$scholarshipDetails.universityCity",
                ", ",
                "$scholarshipDetails.universityCountry",
            ]
        },
        "subjectCategory": "$scholarshipDetails.subjectCategory",
        "applicationFees": "$scholarshipDetails.applicationFees",
        "serviceCharge": "$scholarshipDetails.serviceCharge",
        "scholarshipId": "$scholarshipDetails._id",
    }
    for field in APPLICANT_PROFILE_FIELDS:
        project.setdefault(field, 1)
    return [
        {"$match": {"applicantEmail": applicant_email}},
        *_scholarship_lookup(),
        {"$project": project},
    ]


def admin_applications_pipeline(sort: str | None = None) -> list[dict[str, Any]]:
    key, direction = APPLICATION_SORT_KEYS.get(
        str(sort or ""), APPLICATION_SORT_KEYS[DEFAULT_APPLICATION_SORT]
    )
    project: dict[str, Any] = {
        "applicantEmail": 1,
        "status": 1,
        "feedback": 1,
        "applicationDate": 1,
        "scholarshipId": 1,
        "universityName": "$scholarshipDetails.universityName",
        "scholarshipName": "$scholarshipDetails.scholarshipName",
        "scholarshipCategory": "$scholarshipDetails.scholarshipCategory",
        "subjectCategory": "$scholarshipDetails.subjectCategory",
        "applicationDeadline": "$scholarshipDetails.applicationDeadline",
    }
    for field in APPLICANT_PROFILE_FIELDS:
        project.setdefault(field, 1)
    return [
        *_scholarship_lookup(),
        {"$project": project},
        # _id keeps the order deterministic among equal sort keys.
        {"$sort": {key: direction, "_id": direction}},
    ]


def create_application(*, data: dict[str, Any], applicant_email: str) -> Any:
    doc = {k: v for k, v in data.items() if k not in APPLICANT_PROTECTED_FIELDS}
    doc["scholarshipId"] = parse_object_id(data.get("scholarshipId"), field="scholarship id")
    doc["applicantEmail"] = applicant_email
    doc["applicationDate"] = now_utc()
    doc["status"] = INITIAL_STATUS
    return get_collection(APPLICATIONS).insert_one(doc)


def get_application(application_id: str) -> dict[str, Any] | None:
    return get_collection(APPLICATIONS).find_one({"_id": parse_object_id(application_id)})


def list_my_applications(*, applicant_email: str) -> list[dict[str, Any]]:
    return get_collection(APPLICATIONS).aggregate(my_applications_pipeline(applicant_email))


def list_all_applications(*, sort: str | None = None) -> list[dict[str, Any]]:
    return get_collection(APPLICATIONS).aggregate(admin_applications_pipeline(sort))


def update_own_application(
    *,
    application_id: str,
    applicant_email: str,
    updates: dict[str, Any],
) -> ApplicantEdit:
    """
    Apply an applicant's edit. Only the owner may edit, and only while pending;
    the status condition is part of the update filter so the check and the
    write are one atomic operation.
    """
    oid = parse_object_id(application_id)
    coll = get_collection(APPLICATIONS)
    clean = {k: v for k, v in updates.items() if k not in APPLICANT_PROTECTED_FIELDS}

    owned = {"_id": oid, "applicantEmail": applicant_email}
    filt = {**owned, "status": {"$in": sorted(EDITABLE_STATUSES)}}
    if clean:
        res = coll.update_one(filt, {"$set": clean})
        matched = res.matched_count > 0
    else:
        matched = coll.find_one(filt) is not None
    if matched:
        return ApplicantEdit(success=True)

    current = coll.find_one(owned)
    if current is not None:
        status = str(current.get("status") or "")
        if status not in EDITABLE_STATUSES:
            return ApplicantEdit(success=False, blocked_status=status)
    return ApplicantEdit(success=False)


def cancel_own_application(*, application_id: str, applicant_email: str) -> bool:
    # Cancelling removes the record outright; there is no cancelled status.
    filt = {"_id": parse_object_id(application_id), "applicantEmail": applicant_email}
    return get_collection(APPLICATIONS).delete_one(filt) > 0


def set_application_status(*, application_id: str, status: str) -> bool:
    res = get_collection(APPLICATIONS).update_one(
        {"_id": parse_object_id(application_id)}, {"$set": {"status": status}}
    )
    return res.matched_count > 0


def set_application_feedback(*, application_id: str, feedback: str | None) -> bool:
    res = get_collection(APPLICATIONS).update_one(
        {"_id": parse_object_id(application_id)}, {"$set": {"feedback": feedback}}
    )
    return res.matched_count > 0
