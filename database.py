"""
MongoDB access for the chat API.

The client is created once in the application lifespan and kept on
``app.state``; route handlers receive collections through FastAPI
dependencies instead of module-level globals.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import Depends, Request
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import Settings
from errors import ValidationFailed
from logger import get_logger

logger = get_logger(__name__)

USER_COLLECTION = "user"
CHANNEL_COLLECTION = "channel"
MESSAGE_COLLECTION = "message"

# Unique fields per collection, in the order a conflict is reported
UNIQUE_FIELDS = {
    USER_COLLECTION: ("userName", "email"),
    CHANNEL_COLLECTION: ("channelName", "desc"),
}


def connect(settings: Settings) -> MongoClient:
    logger.info(f"Connecting to database {settings.database_name}")
    client: MongoClient = MongoClient(settings.database_url)
    # Fail at startup rather than on the first request
    client.admin.command("ping")
    logger.info(f"Connected to {settings.database_name} successfully")
    return client


def ensure_indexes(db: Database) -> None:
    """Create the unique indexes that enforce userName/email and channelName/desc uniqueness."""
    db[USER_COLLECTION].create_index([("userName", ASCENDING)], unique=True)
    db[USER_COLLECTION].create_index([("email", ASCENDING)], unique=True)
    db[CHANNEL_COLLECTION].create_index([("channelName", ASCENDING)], unique=True)
    # desc is optional, so channels without one must not collide
    db[CHANNEL_COLLECTION].create_index([("desc", ASCENDING)], unique=True, sparse=True)
    db[MESSAGE_COLLECTION].create_index([("channelId", ASCENDING), ("createdAt", ASCENDING)])
    logger.info("Database indexes ensured")


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_users(db: Database = Depends(get_db)) -> Collection:
    return db[USER_COLLECTION]


def get_channels(db: Database = Depends(get_db)) -> Collection:
    return db[CHANNEL_COLLECTION]


def get_messages(db: Database = Depends(get_db)) -> Collection:
    return db[MESSAGE_COLLECTION]


# Utilities

def now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def parse_object_id(value: str, label: str) -> ObjectId:
    if not ObjectId.is_valid(value) or len(value) != 24:
        raise ValidationFailed(f"Invalid {label} ID", error=f"{label} id must be a 24 character hex string")
    return ObjectId(value)


def create_document(collection: Collection, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a document stamped with createdAt/updatedAt and return it with its _id."""
    doc = dict(data)
    stamp = now()
    doc["createdAt"] = as_utc(doc.get("createdAt")) or stamp
    doc["updatedAt"] = as_utc(doc.get("updatedAt")) or stamp
    result = collection.insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def get_documents(
    collection: Collection,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort_field: Optional[str] = None,
) -> List[Dict[str, Any]]:
    cursor = collection.find(filter_dict or {})
    if sort_field:
        cursor = cursor.sort(sort_field, ASCENDING)
    return list(cursor)


def duplicate_field(collection: Collection, exc: DuplicateKeyError, doc: Dict[str, Any]) -> Optional[str]:
    """Name the field behind a unique index violation."""
    fields = UNIQUE_FIELDS.get(collection.name, ())
    details = exc.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue") or {}
    for field in fields:
        if field in key_pattern:
            return field
    # Not every server/driver reports the key, so look for the colliding value
    for field in fields:
        if doc.get(field) is not None and collection.find_one({field: doc[field]}):
            return field
    return None


def to_public(doc: Optional[Dict[str, Any]], exclude: tuple = ("password",)) -> Optional[Dict[str, Any]]:
    """Convert a document into JSON-safe form: `_id` becomes `id`, ObjectIds and datetimes become strings."""
    if not doc:
        return doc
    out: Dict[str, Any] = {}
    for k, v in doc.items():
        if k in exclude:
            continue
        if k == "_id":
            out["id"] = str(v)
        elif isinstance(v, ObjectId):
            out[k] = str(v)
        elif isinstance(v, datetime):
            out[k] = v.isoformat()
        elif isinstance(v, list):
            out[k] = [str(x) if isinstance(x, ObjectId) else x for x in v]
        else:
            out[k] = v
    return out
