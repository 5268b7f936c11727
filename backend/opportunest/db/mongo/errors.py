from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class StoreError(Exception):
    """Base error for MongoDB operations.

    These are intended to be caught by a FastAPI exception handler and rendered
    into the standard error envelope.
    """

    message: str
    operation: str | None = None
    collection: str | None = None
    filter: dict[str, Any] | None = None
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class StoreNotFound(StoreError):
    pass


@dataclass(slots=True)
class StoreConflict(StoreError):
    pass


@dataclass(slots=True)
class StoreValidation(StoreError):
    pass


@dataclass(slots=True)
class StoreUnavailable(StoreError):
    pass


@dataclass(slots=True)
class StoreInternal(StoreError):
    pass
