"""
MongoDB access for the portfolio API.

One ``MongoClient`` is created lazily the first time a request needs the
store and is reused for the life of the process; pymongo pools the
underlying connections itself.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import Depends
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

import config
from errors import ApiError

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_client_lock = threading.Lock()
_warned_unconfigured = False


def get_db() -> Optional[Database]:
    """Return the configured database, or None when no URL is set."""
    global _client, _warned_unconfigured
    if not config.DATABASE_URL:
        if not _warned_unconfigured:
            logger.warning("DATABASE_URL not set; database features are unavailable")
            _warned_unconfigured = True
        return None
    with _client_lock:
        if _client is None:
            try:
                _client = MongoClient(config.DATABASE_URL)
            except PyMongoError:
                logger.exception("Failed to create MongoDB client")
                return None
    return _client[config.DATABASE_NAME]


def require_db(db: Optional[Database] = Depends(get_db)) -> Database:
    if db is None:
        raise ApiError(503, "Database not available")
    return db


def utcnow() -> datetime:
    # BSON dates carry millisecond precision and come back naive
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """A fresh stamp that is strictly later than ``previous``."""
    now = utcnow()
    if isinstance(previous, datetime):
        if previous.tzinfo is not None:
            previous = previous.astimezone(timezone.utc).replace(tzinfo=None)
        if now <= previous:
            now = previous + timedelta(milliseconds=1)
    return now


def create_document(db: Database, collection_name: str, data: Dict[str, Any]) -> str:
    """Insert a document stamped with createdAt/updatedAt and return its id."""
    doc = dict(data)
    now = utcnow()
    doc.setdefault("createdAt", now)
    doc["updatedAt"] = now
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(list(sort))
    return list(cursor)
