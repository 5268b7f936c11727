from __future__ import annotations

import re
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any

import pytest
from bson import ObjectId

# Ensure `backend/` is on sys.path so `import opportunest.*` works in tests.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from opportunest.db.mongo.collection import WriteOutcome  # noqa: E402


def _get_path(doc: dict[str, Any], path: str) -> Any:
    cur: Any = doc
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _has_path(doc: dict[str, Any], path: str) -> bool:
    cur: Any = doc
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return False
        cur = cur[part]
    return True


def _matches(doc: dict[str, Any], filt: dict[str, Any]) -> bool:
    for key, cond in filt.items():
        if key == "$or":
            if not any(_matches(doc, c) for c in cond):
                return False
            continue
        val = _get_path(doc, key)
        if isinstance(cond, dict) and cond and all(str(k).startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$in":
                    if val not in arg:
                        return False
                elif op == "$regex":
                    flags = re.IGNORECASE if "i" in str(cond.get("$options", "")) else 0
                    if not isinstance(val, str) or not re.search(arg, val, flags):
                        return False
                elif op == "$options":
                    continue
                elif op == "$gte":
                    if val is None or val < arg:
                        return False
                else:
                    raise NotImplementedError(op)
        elif val != cond:
            return False
    return True


def _sort_docs(docs: list[dict[str, Any]], spec: list[tuple[str, int]]) -> list[dict[str, Any]]:
    out = list(docs)
    for key, direction in reversed(spec):
        def _key(d: dict[str, Any], k: str = key):
            v = _get_path(d, k)
            return (v is None, str(v) if isinstance(v, ObjectId) else (v if v is not None else 0))

        out.sort(key=_key, reverse=direction < 0)
    return out


def _eval_expr(doc: dict[str, Any], expr: Any) -> Any:
    if isinstance(expr, str) and expr.startswith("$"):
        return _get_path(doc, expr[1:])
    if isinstance(expr, dict) and "$concat" in expr:
        parts = [_eval_expr(doc, p) for p in expr["$concat"]]
        if any(p is None for p in parts):
            return None
        return "".join(str(p) for p in parts)
    if isinstance(expr, dict) and "$dateToString" in expr:
        spec = expr["$dateToString"]
        value = _eval_expr(doc, spec["date"])
        return value.strftime(spec["format"]) if value is not None else None
    return expr


class FakeCollection:
    """
    In-memory stand-in exposing the MongoCollection interface.

    Supports the filter operators and aggregation stages the repositories use.
    Every aggregate pipeline is recorded in `pipelines`.
    """

    def __init__(self, name: str, registry: dict[str, "FakeCollection"]):
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.pipelines: list[list[dict[str, Any]]] = []
        self._registry = registry

    # --- reads ---

    def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        for d in self.docs:
            if _matches(d, filter):
                return deepcopy(d)
        return None

    def find(self, filter=None, *, sort=None, skip=0, limit=0) -> list[dict[str, Any]]:
        out = [deepcopy(d) for d in self.docs if _matches(d, filter or {})]
        if sort:
            out = _sort_docs(out, sort)
        if skip:
            out = out[skip:]
        if limit:
            out = out[:limit]
        return out

    def count(self, filter=None) -> int:
        return len([d for d in self.docs if _matches(d, filter or {})])

    def aggregate(self, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self.pipelines.append(pipeline)
        rows = [deepcopy(d) for d in self.docs]
        for stage in pipeline:
            (op, spec), = stage.items()
            if op == "$match":
                rows = [r for r in rows if _matches(r, spec)]
            elif op == "$lookup":
                foreign = self._registry.setdefault(spec["from"], FakeCollection(spec["from"], self._registry))
                for r in rows:
                    local = _get_path(r, spec["localField"])
                    r[spec["as"]] = [
                        deepcopy(f) for f in foreign.docs if _get_path(f, spec["foreignField"]) == local
                    ]
            elif op == "$unwind":
                field = spec[1:]
                unwound = []
                for r in rows:
                    for item in r.get(field) or []:
                        unwound.append({**r, field: item})
                rows = unwound
            elif op == "$project":
                projected = []
                for r in rows:
                    out: dict[str, Any] = {}
                    if spec.get("_id", 1) not in (0, False):
                        out["_id"] = r.get("_id")
                    for key, expr in spec.items():
                        if key == "_id":
                            continue
                        if expr in (1, True):
                            if _has_path(r, key):
                                out[key] = _get_path(r, key)
                            continue
                        value = _eval_expr(r, expr)
                        if value is not None or not (isinstance(expr, str) and expr.startswith("$")):
                            out[key] = value
                    projected.append(out)
                rows = projected
            elif op == "$group":
                groups: dict[Any, dict[str, Any]] = {}
                for r in rows:
                    key = _eval_expr(r, spec["_id"])
                    g = groups.setdefault(key, {"_id": key})
                    for acc_name, acc in spec.items():
                        if acc_name == "_id":
                            continue
                        g[acc_name] = g.get(acc_name, 0) + _eval_expr(r, acc["$sum"])
                rows = list(groups.values())
            elif op == "$sort":
                rows = _sort_docs(rows, list(spec.items()))
            else:
                raise NotImplementedError(op)
        return rows

    # --- writes ---

    def insert_one(self, document: dict[str, Any]) -> Any:
        doc = deepcopy(document)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return doc["_id"]

    def _apply(self, doc: dict[str, Any], update: dict[str, Any], *, inserting: bool) -> bool:
        before = deepcopy(doc)
        for k, v in (update.get("$set") or {}).items():
            doc[k] = deepcopy(v)
        if inserting:
            for k, v in (update.get("$setOnInsert") or {}).items():
                doc[k] = deepcopy(v)
        return doc != before

    def update_one(self, filter, update, *, upsert=False) -> WriteOutcome:
        for d in self.docs:
            if _matches(d, filter):
                modified = self._apply(d, update, inserting=False)
                return WriteOutcome(matched_count=1, modified_count=int(modified))
        if upsert:
            doc = {k: v for k, v in filter.items() if not k.startswith("$")}
            self._apply(doc, update, inserting=True)
            new_id = self.insert_one(doc)
            return WriteOutcome(matched_count=0, modified_count=0, upserted_id=new_id)
        return WriteOutcome(matched_count=0, modified_count=0)

    def find_one_and_update(self, filter, update, *, upsert=False) -> dict[str, Any] | None:
        res = self.update_one(filter, update, upsert=upsert)
        if res.upserted_id is not None:
            return self.find_one({"_id": res.upserted_id})
        return self.find_one(filter)

    def delete_one(self, filter) -> int:
        for i, d in enumerate(self.docs):
            if _matches(d, filter):
                del self.docs[i]
                return 1
        return 0


@pytest.fixture
def fake_db(monkeypatch):
    """Route every repository's collection access to in-memory fakes."""
    from opportunest.repositories import (
        applications_repo,
        reviews_repo,
        scholarships_repo,
        stats_repo,
        users_repo,
    )

    registry: dict[str, FakeCollection] = {}

    def _get(name: str) -> FakeCollection:
        if name not in registry:
            registry[name] = FakeCollection(name, registry)
        return registry[name]

    for mod in (applications_repo, reviews_repo, scholarships_repo, stats_repo, users_repo):
        monkeypatch.setattr(mod, "get_collection", _get)
    return _get


@pytest.fixture
def token_auth(monkeypatch):
    """
    Bypass Firebase verification: the bearer token is the caller's email.
    Tokens starting with "bad" fail verification.
    """
    from opportunest.auth import dependencies as deps
    from opportunest.auth.firebase import TokenVerificationError, VerifiedUser

    def _verify(token: str) -> VerifiedUser:
        if token.startswith("bad"):
            raise TokenVerificationError("invalid signature")
        name = token.split("@", 1)[0].title()
        return VerifiedUser(
            uid=f"uid-{name.lower()}",
            email=token,
            name=name,
            picture=f"https://img.example.com/{name.lower()}.png",
            claims={"sub": f"uid-{name.lower()}", "email": token},
        )

    monkeypatch.setattr(deps, "verify_bearer_token", _verify)

    def _headers(email: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {email}"}

    return _headers


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from opportunest.main import create_app

    return TestClient(create_app())


def add_user(fake_db, *, email: str, role: str = "user", name: str = "N/A") -> ObjectId:
    return fake_db("users").insert_one({"email": email, "role": role, "name": name})


SCHOLARSHIP_BODY: dict[str, Any] = {
    "scholarshipName": "Global Leaders Award",
    "universityName": "University of Oslo",
    "universityImage": "https://img.example.com/oslo.png",
    "universityCountry": "Norway",
    "universityCity": "Oslo",
    "universityWorldRank": 101,
    "subjectCategory": "Engineering",
    "scholarshipCategory": "Full fund",
    "degree": "Masters",
    "applicationFees": 50,
    "serviceCharge": 10,
    "tuitionFees": 0,
    "applicationDeadline": "2026-12-31",
    "scholarshipDescription": "Fully funded masters programme.",
}


def application_body(scholarship_id: Any, **overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "scholarshipId": str(scholarship_id),
        "applicantName": "Alice",
        "applicantPhone": "+4700000000",
        "applicantAddress": "1 Main St",
        "applicantGender": "Female",
        "applyingDegree": "Masters",
        "sscResult": 4.8,
        "hscResult": "4.9",
        "studyGap": "",
        "applicantPhoto": "https://img.example.com/alice.png",
    }
    body.update(overrides)
    return body
