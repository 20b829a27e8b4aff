"""
Database helpers

Connection setup plus the small set of document helpers the routes use.
Collections are registered lazily, once per process, the first time a
schema asks for them. Timestamps are maintained here:
- createdAt is written on insert only
- updatedAt is written on insert and on every update
"""

import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union

from bson import ObjectId
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection

from schemas import Document

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "video_editor")

client = MongoClient(DATABASE_URL, tz_aware=True) if DATABASE_URL else None
db = client[DATABASE_NAME] if client is not None else None

_collections: Dict[str, Collection] = {}


def _now():
    return datetime.now(timezone.utc)


def get_collection(model: Type[Document]) -> Collection:
    """Return the collection for ``model``, creating its indexes on first use."""
    name = model.collection_name()
    collection = _collections.get(name)
    if collection is not None:
        return collection
    if db is None:
        raise RuntimeError("Database not configured (DATABASE_URL is not set)")

    collection = db[name]
    for field in model.unique_fields:
        collection.create_index(field, unique=True)
    _collections[name] = collection
    logger.info("Registered collection %s (unique: %s)", name, ", ".join(model.unique_fields) or "-")
    return collection


def create_document(model: Type[Document], data: Union[Document, Dict[str, Any]]) -> dict:
    """Validate ``data`` against ``model`` and insert it.

    Raises pydantic.ValidationError for missing required fields and
    pymongo.errors.DuplicateKeyError when a unique field is taken.
    """
    record = data if isinstance(data, model) else model.model_validate(data)
    doc = record.model_dump(by_alias=True)
    now = _now()
    doc["createdAt"] = now
    doc["updatedAt"] = now

    collection = get_collection(model)
    inserted_id = collection.insert_one(doc).inserted_id
    logger.info("Created %s %s", model.collection_name(), inserted_id)
    return collection.find_one({"_id": inserted_id})


def get_document(model: Type[Document], doc_id: ObjectId) -> Optional[dict]:
    return get_collection(model).find_one({"_id": doc_id})


def get_documents(
    model: Type[Document],
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
    projection: Optional[Dict[str, int]] = None,
    limit: int = 0,
) -> List[dict]:
    cursor = get_collection(model).find(filter_dict or {}, projection)
    if sort:
        cursor = cursor.sort(list(sort))
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def update_document(model: Type[Document], doc_id: ObjectId, changes: Dict[str, Any]) -> Optional[dict]:
    """$set ``changes`` on one document and bump updatedAt.

    ``changes`` uses stored (camelCase) keys; dotted paths are allowed.
    Returns the updated document, or None when nothing matched.
    """
    update = {k: v for k, v in changes.items() if k not in ("_id", "createdAt")}
    update["updatedAt"] = _now()
    return get_collection(model).find_one_and_update(
        {"_id": doc_id},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )


def delete_document(model: Type[Document], doc_id: ObjectId) -> bool:
    result = get_collection(model).delete_one({"_id": doc_id})
    if result.deleted_count:
        logger.info("Deleted %s %s", model.collection_name(), doc_id)
    return result.deleted_count > 0
