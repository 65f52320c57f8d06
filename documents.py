"""
Turning stored documents into response bodies, and finding them by id or slug.

Routes that take a ``{key}`` path segment accept either a document's
ObjectId or its slug: the id is tried first, then the slug.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Type

from bson import ObjectId
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.collection import Collection

from schemas import Document

logger = logging.getLogger(__name__)


def serialize_document(doc: Any) -> Any:
    """Recursively replace ObjectIds with their string form.

    Lists are mapped item by item, mappings walked key by key; dates and
    other values are returned untouched. Already-serialized input comes back
    unchanged.
    """
    if doc is None:
        return None
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [serialize_document(item) for item in doc]
    if isinstance(doc, dict):
        return {key: serialize_document(value) for key, value in doc.items()}
    return doc


def serialize(doc: Optional[dict], schema: Type[Document], strict: bool = False) -> Optional[dict]:
    """Map a stored document onto its entity schema for the wire.

    Documents that do not fit the schema (older or hand-edited data) are
    returned as walked, unless ``strict`` is set, in which case the
    ValidationError propagates.
    """
    if doc is None:
        return None
    walked = serialize_document(doc)
    try:
        model = schema.model_validate(walked)
    except ValidationError as exc:
        if strict:
            raise
        logger.warning("Stored %s %s does not match its schema: %s", schema.__name__, walked.get("_id"), exc)
        return walked
    return model.model_dump(by_alias=True)


def serialize_many(docs: List[dict], schema: Type[Document]) -> List[dict]:
    return [serialize(doc, schema) for doc in docs]


def parse_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def key_filters(key: str) -> Iterator[Dict[str, Any]]:
    oid = parse_object_id(key)
    if oid is not None:
        yield {"_id": oid}
    yield {"slug": key}


def find_by_key(collection: Collection, key: str) -> Optional[dict]:
    for filt in key_filters(key):
        doc = collection.find_one(filt)
        if doc is not None:
            return doc
    return None


def update_by_key(collection: Collection, key: str, update: Dict[str, Any]) -> Optional[dict]:
    for filt in key_filters(key):
        doc = collection.find_one_and_update(filt, {"$set": update}, return_document=ReturnDocument.AFTER)
        if doc is not None:
            return doc
    return None


def delete_by_key(collection: Collection, key: str) -> Optional[dict]:
    for filt in key_filters(key):
        doc = collection.find_one_and_delete(filt)
        if doc is not None:
            return doc
    return None
