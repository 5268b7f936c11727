"""
Admin statistics, computed fresh from the store on every call.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from ..db.mongo.collection import APPLICATIONS, SCHOLARSHIPS, USERS, get_collection

APPLICATION_WINDOW_DAYS = 7


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def category_stats_pipeline() -> list[dict[str, Any]]:
    return [
        {"$group": {"_id": "$scholarshipCategory", "count": {"$sum": 1}}},
        {"$project": {"name": "$_id", "value": "$count", "_id": 0}},
    ]


def daily_applications_pipeline(since: datetime) -> list[dict[str, Any]]:
    # Only days with at least one application appear; there is no zero fill.
    return [
        {"$match": {"applicationDate": {"$gte": since}}},
        {
            "$group": {
                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$applicationDate"}},
                "count": {"$sum": 1},
            }
        },
        {"$sort": {"_id": 1}},
        {"$project": {"date": "$_id", "applications": "$count", "_id": 0}},
    ]


def admin_stats(*, now: datetime | None = None) -> dict[str, Any]:
    users = get_collection(USERS)
    scholarships = get_collection(SCHOLARSHIPS)
    applications = get_collection(APPLICATIONS)

    since = (now or now_utc()) - timedelta(days=APPLICATION_WINDOW_DAYS)

    return {
        "totalUsers": users.count({}),
        "totalScholarships": scholarships.count({}),
        "totalApplications": applications.count({}),
        "categoryStats": scholarships.aggregate(category_stats_pipeline()),
        "applicationStats": applications.aggregate(daily_applications_pipeline(since)),
    }
