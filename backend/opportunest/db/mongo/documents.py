from __future__ import annotations

from datetime import date, datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from .errors import StoreValidation


def parse_object_id(value: Any, *, field: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value or "").strip())
    except (InvalidId, TypeError) as e:
        raise StoreValidation(message=f"Invalid {field}", cause=e) from e


def _serialize_value(v: Any) -> Any:
    if isinstance(v, ObjectId):
        return str(v)
    if isinstance(v, datetime):
        return v.isoformat().replace("+00:00", "Z")
    if isinstance(v, date):
        return v.isoformat()
    if isinstance(v, dict):
        return {str(k): _serialize_value(x) for k, x in v.items()}
    if isinstance(v, list):
        return [_serialize_value(x) for x in v]
    return v


def serialize_doc(doc: dict[str, Any] | None) -> dict[str, Any] | None:
    """Render a stored document for JSON: ObjectIds and datetimes become strings."""
    if doc is None:
        return None
    return {str(k): _serialize_value(v) for k, v in doc.items()}


def serialize_docs(docs: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [d for d in (serialize_doc(x) for x in docs) if d is not None]
