"""
Database Helper Functions

MongoDB helpers shared by every service module. Collections used by the
storefront: "users", "products", "orders" plus the identity provider's
"identities" and "revoked_tokens".

Every helper raises errors.StoreUnavailable when the database is not configured
or pymongo reports a failure, so callers deal with a single error type.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Union, Optional, Dict, Any, List

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import PyMongoError

import settings
from errors import StoreUnavailable

logger = logging.getLogger(__name__)

_client = None
db = None

if settings.DATABASE_URL and settings.DATABASE_NAME:
    _client = MongoClient(settings.DATABASE_URL, serverSelectionTimeoutMS=settings.DB_TIMEOUT_MS)
    db = _client[settings.DATABASE_NAME]
    logger.info("MongoDB client created for database %s", settings.DATABASE_NAME)


def _ensure_db():
    if db is None:
        raise StoreUnavailable("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")


@contextmanager
def _guard(action: str, collection_name: str):
    _ensure_db()
    try:
        yield
    except PyMongoError as e:
        logger.error("MongoDB %s on %s failed: %s", action, collection_name, e)
        raise StoreUnavailable(f"Database error during {action}") from e


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def _object_id(_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(_id)
    except (InvalidId, TypeError):
        return None


# CRUD helpers

def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    payload = _to_dict(data)
    now = datetime.now(timezone.utc)
    payload.setdefault('created_at', now)
    payload['updated_at'] = now
    with _guard("insert", collection_name):
        result = db[collection_name].insert_one(payload)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort: Optional[list] = None) -> List[dict]:
    with _guard("find", collection_name):
        cursor = db[collection_name].find(filter_dict or {})
        if sort:
            cursor = cursor.sort([tuple(s) for s in sort])
        if limit:
            cursor = cursor.limit(int(limit))
        return [serialize_doc(doc) for doc in cursor]


def get_document_by_id(collection_name: str, _id: str) -> Optional[dict]:
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return None
    with _guard("find_one", collection_name):
        doc = db[collection_name].find_one({"_id": oid})
    return serialize_doc(doc) if doc else None


def update_document(collection_name: str, _id: str, update_data: Union[BaseModel, Dict[str, Any]]) -> bool:
    return update_document_where(collection_name, _id, {}, update_data)


def update_document_where(collection_name: str, _id: str, expected: Dict[str, Any], update_data: Union[BaseModel, Dict[str, Any]]) -> bool:
    """Update one document only if it still holds the ``expected`` field values.

    Returns False when no document matched the id and the precondition.
    """
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return False
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = datetime.now(timezone.utc)
    with _guard("update", collection_name):
        result = db[collection_name].update_one({"_id": oid, **expected}, update)
    return result.matched_count > 0


def delete_document(collection_name: str, _id: str) -> bool:
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return False
    with _guard("delete", collection_name):
        result = db[collection_name].delete_one({"_id": oid})
    return result.deleted_count > 0


def count_documents(collection_name: str, filter_dict: Optional[dict] = None) -> int:
    with _guard("count", collection_name):
        return db[collection_name].count_documents(filter_dict or {})


def list_collections() -> List[str]:
    with _guard("list_collection_names", "database"):
        return db.list_collection_names()


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))  # convert ObjectId to string
    for k, v in list(d.items()):
        if isinstance(v, datetime):
            d[k] = v.isoformat()
    return d
