"""
MongoDB connection and small document helpers.

`db` stays None when DATABASE_URL is not configured; request handlers get a
503 through `get_database()` instead of the process failing at import.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import DATABASE_NAME, DATABASE_URL
from errors import ServiceUnavailable
from schemas import LIKES, VIDEOS

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None

if DATABASE_URL:
    client = MongoClient(DATABASE_URL, serverSelectionTimeoutMS=5000, tz_aware=True)
    db = client[DATABASE_NAME]
else:
    logger.warning("DATABASE_URL not set - database features disabled")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_database() -> Database:
    if db is None:
        raise ServiceUnavailable("Database not configured")
    return db


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document, stamping createdAt/updatedAt. Returns the new id as a string."""
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = utc_now()
    doc.setdefault("createdAt", now)
    doc["updatedAt"] = now
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def ensure_indexes() -> None:
    if db is None:
        return
    try:
        db[VIDEOS].create_index([("owner", ASCENDING)])
        db[VIDEOS].create_index([("createdAt", DESCENDING)])
        db[LIKES].create_index([("video", ASCENDING)])
        logger.info("MongoDB indexes ensured")
    except PyMongoError as e:
        logger.error(f"Could not create MongoDB indexes: {e}")


def ping() -> dict:
    """Connectivity report used by the health endpoint."""
    status = {
        "configured": db is not None,
        "database": DATABASE_NAME if db is not None else None,
        "connected": False,
        "collections": [],
    }
    if db is None:
        return status
    try:
        client.admin.command("ping")
        status["connected"] = True
        status["collections"] = db.list_collection_names()[:10]
    except Exception as e:
        status["error"] = str(e)[:100]
    return status
