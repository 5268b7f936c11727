from __future__ import annotations

from typing import Literal

ApplicationStatus = Literal["pending", "processing", "completed", "Rejected"]

APPLICATION_STATUSES: tuple[str, ...] = ("pending", "processing", "completed", "Rejected")

INITIAL_STATUS = "pending"

# Only pending applications can be edited by their applicant.
EDITABLE_STATUSES: frozenset[str] = frozenset({"pending"})

DEFAULT_APPLICATION_SORT = "applied_desc"

APPLICATION_SORT_KEYS: dict[str, tuple[str, int]] = {
    "applied_desc": ("applicationDate", -1),
    "applied_asc": ("applicationDate", 1),
    "deadline_asc": ("applicationDeadline", 1),
    "deadline_desc": ("applicationDeadline", -1),
}
