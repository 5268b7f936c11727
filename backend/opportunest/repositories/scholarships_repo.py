from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..db.mongo.collection import SCHOLARSHIPS, get_collection
from ..db.mongo.documents import parse_object_id

SEARCH_FIELDS: tuple[str, ...] = ("scholarshipName", "universityName", "degree")

TOP_SCHOLARSHIPS_LIMIT = 6
DEFAULT_PAGE_SIZE = 6
MAX_PAGE_SIZE = 100

# Stamped by the server at creation; never client-mutable.
SERVER_FIELDS: frozenset[str] = frozenset({"_id", "postDate", "postedUserEmail"})


@dataclass(slots=True)
class SearchPage:
    total: int
    items: list[dict[str, Any]]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def search_filter(search: str | None) -> dict[str, Any]:
    term = str(search or "").strip()
    if not term:
        return {}
    pattern = {"$regex": re.escape(term), "$options": "i"}
    return {"$or": [{field: dict(pattern)} for field in SEARCH_FIELDS]}


def normalize_page(page: Any, limit: Any) -> tuple[int, int]:
    def _pos_int(v: Any, default: int) -> int:
        try:
            n = int(v)
        except (TypeError, ValueError):
            return default
        return n if n > 0 else default

    p = _pos_int(page, 1)
    lim = min(MAX_PAGE_SIZE, _pos_int(limit, DEFAULT_PAGE_SIZE))
    return p, lim


def create_scholarship(*, data: dict[str, Any], posted_by: str) -> Any:
    doc = {k: v for k, v in data.items() if k not in SERVER_FIELDS}
    doc["postDate"] = now_utc()
    doc["postedUserEmail"] = posted_by
    return get_collection(SCHOLARSHIPS).insert_one(doc)


def list_scholarships() -> list[dict[str, Any]]:
    return get_collection(SCHOLARSHIPS).find({})


def top_scholarships(*, limit: int = TOP_SCHOLARSHIPS_LIMIT) -> list[dict[str, Any]]:
    # Lowest application fee first; newest posting breaks ties.
    return get_collection(SCHOLARSHIPS).find(
        {},
        sort=[("applicationFees", 1), ("postDate", -1)],
        limit=limit,
    )


def search_scholarships(*, search: str | None, page: Any = 1, limit: Any = DEFAULT_PAGE_SIZE) -> SearchPage:
    p, lim = normalize_page(page, limit)
    filt = search_filter(search)
    coll = get_collection(SCHOLARSHIPS)
    total = coll.count(filt)
    items = coll.find(filt, skip=(p - 1) * lim, limit=lim)
    return SearchPage(total=total, items=items)


def get_scholarship(scholarship_id: str) -> dict[str, Any] | None:
    return get_collection(SCHOLARSHIPS).find_one({"_id": parse_object_id(scholarship_id)})


def scholarship_exists(scholarship_id: Any) -> bool:
    return get_collection(SCHOLARSHIPS).find_one({"_id": parse_object_id(scholarship_id, field="scholarship id")}) is not None


def update_scholarship(*, scholarship_id: str, updates: dict[str, Any]) -> bool:
    oid = parse_object_id(scholarship_id)
    clean = {k: v for k, v in updates.items() if k not in SERVER_FIELDS}
    if not clean:
        return get_collection(SCHOLARSHIPS).find_one({"_id": oid}) is not None
    res = get_collection(SCHOLARSHIPS).update_one({"_id": oid}, {"$set": clean})
    return res.matched_count > 0


def delete_scholarship(*, scholarship_id: str) -> bool:
    return get_collection(SCHOLARSHIPS).delete_one({"_id": parse_object_id(scholarship_id)}) > 0
