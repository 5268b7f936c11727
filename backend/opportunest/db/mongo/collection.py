from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from pymongo import ReturnDocument
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)

from .client import database
from .errors import (
    StoreConflict,
    StoreError,
    StoreInternal,
    StoreUnavailable,
    StoreValidation,
)

T = TypeVar("T")

USERS = "users"
SCHOLARSHIPS = "scholarships"
APPLICATIONS = "applications"
REVIEWS = "reviews"

# Server error codes for malformed queries/pipelines.
_VALIDATION_CODES = {2, 9, 14, 15983, 40323, 40324, 17276}


@dataclass(frozen=True, slots=True)
class WriteOutcome:
    matched_count: int
    modified_count: int
    upserted_id: Any | None = None


def _map_pymongo_error(
    *,
    operation: str,
    collection: str | None,
    filter: dict[str, Any] | None,
    exc: Exception,
) -> StoreError:
    if isinstance(exc, StoreError):
        return exc

    if isinstance(exc, DuplicateKeyError):
        return StoreConflict(
            message="Duplicate key",
            operation=operation,
            collection=collection,
            filter=filter,
            cause=exc,
        )

    if isinstance(exc, (ServerSelectionTimeoutError, ConnectionFailure)):
        return StoreUnavailable(
            message="Database unavailable",
            operation=operation,
            collection=collection,
            filter=filter,
            cause=exc,
        )

    if isinstance(exc, OperationFailure) and exc.code in _VALIDATION_CODES:
        return StoreValidation(
            message="Database request validation failed",
            operation=operation,
            collection=collection,
            filter=filter,
            cause=exc,
        )

    return StoreInternal(
        message="Database operation failed",
        operation=operation,
        collection=collection,
        filter=filter,
        cause=exc,
    )


def mongo_call(
    operation: str,
    fn: Callable[[], T],
    *,
    collection: str | None = None,
    filter: dict[str, Any] | None = None,
) -> T:
    # Single attempt; driver failures surface as typed StoreErrors.
    try:
        return fn()
    except PyMongoError as e:
        raise _map_pymongo_error(
            operation=operation, collection=collection, filter=filter, exc=e
        ) from e


class MongoCollection:
    def __init__(self, *, name: str):
        self.name = str(name)
        self._coll = database()[self.name]

    # --- reads ---

    def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        return mongo_call(
            "FindOne", lambda: self._coll.find_one(filter), collection=self.name, filter=filter
        )

    def find(
        self,
        filter: dict[str, Any] | None = None,
        *,
        sort: list[tuple[str, int]] | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[dict[str, Any]]:
        def _op():
            cursor = self._coll.find(filter or {})
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(int(skip))
            if limit:
                cursor = cursor.limit(int(limit))
            return list(cursor)

        return mongo_call("Find", _op, collection=self.name, filter=filter)

    def count(self, filter: dict[str, Any] | None = None) -> int:
        return mongo_call(
            "CountDocuments",
            lambda: int(self._coll.count_documents(filter or {})),
            collection=self.name,
            filter=filter,
        )

    def aggregate(self, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return mongo_call(
            "Aggregate", lambda: list(self._coll.aggregate(pipeline)), collection=self.name
        )

    # --- writes ---

    def insert_one(self, document: dict[str, Any]) -> Any:
        return mongo_call(
            "InsertOne",
            lambda: self._coll.insert_one(document).inserted_id,
            collection=self.name,
        )

    def update_one(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        upsert: bool = False,
    ) -> WriteOutcome:
        def _op():
            res = self._coll.update_one(filter, update, upsert=upsert)
            return WriteOutcome(
                matched_count=int(res.matched_count),
                modified_count=int(res.modified_count),
                upserted_id=res.upserted_id,
            )

        return mongo_call("UpdateOne", _op, collection=self.name, filter=filter)

    def find_one_and_update(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        upsert: bool = False,
    ) -> dict[str, Any] | None:
        return mongo_call(
            "FindOneAndUpdate",
            lambda: self._coll.find_one_and_update(
                filter, update, upsert=upsert, return_document=ReturnDocument.AFTER
            ),
            collection=self.name,
            filter=filter,
        )

    def delete_one(self, filter: dict[str, Any]) -> int:
        return mongo_call(
            "DeleteOne",
            lambda: int(self._coll.delete_one(filter).deleted_count),
            collection=self.name,
            filter=filter,
        )


def get_collection(name: str) -> MongoCollection:
    return MongoCollection(name=name)
