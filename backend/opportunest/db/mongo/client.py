from __future__ import annotations

from functools import lru_cache

from pymongo import MongoClient
from pymongo.database import Database

from ...settings import settings


@lru_cache(maxsize=1)
def mongo_client() -> MongoClient:
    if not settings.mongo_uri:
        raise RuntimeError("MONGO_URI is not set")
    timeout_ms = int(settings.mongo_timeout_ms or 5000)
    return MongoClient(
        settings.mongo_uri,
        tz_aware=True,
        connectTimeoutMS=timeout_ms,
        serverSelectionTimeoutMS=timeout_ms,
        appname="opportunest-backend",
    )


def database() -> Database:
    return mongo_client()[settings.mongo_db_name]
