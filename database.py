"""
Database helpers for the EM Luxury Cars store.

Every kind of record lives in its own MongoDB collection. Records carry a
prefixed string id (e.g. "EM-1712345678901-k3j9x0abc") stored as `_id`, and a
`seq` stamp that keeps listings in creation order.
"""

import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger
from pymongo import MongoClient

from config import get_settings

USERS = "user"
SESSIONS = "session"
ORDERS = "order"
RENTALS = "rental"
WISHLIST = "wishlist"
CARTS = "cart"
TICKETS = "ticket"
NOTIFICATIONS = "notification"
CONTACT_MESSAGES = "contact_message"
INBOX_MESSAGES = "inbox_message"
BLOG_POSTS = "blog_post"
TESTIMONIALS = "testimonial"
CARS = "car"
RENTAL_CARS = "rental_car"
PARTS = "part"

ALL_COLLECTIONS = (
    USERS, SESSIONS, ORDERS, RENTALS, WISHLIST, CARTS, TICKETS, NOTIFICATIONS,
    CONTACT_MESSAGES, INBOX_MESSAGES, BLOG_POSTS, TESTIMONIALS, CARS,
    RENTAL_CARS, PARTS,
)

NEWEST_FIRST = [("seq", -1)]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _connect():
    settings = get_settings()
    if not settings.database_url:
        return None
    try:
        client = MongoClient(settings.database_url, serverSelectionTimeoutMS=2000)
        return client[settings.database_name]
    except Exception as e:
        logger.error(f"Could not configure MongoDB client: {e}")
        return None


db = _connect()


def collection(name: str):
    return db[name]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (what MongoDB hands back)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id(prefix: str) -> str:
    millis = int(time.time() * 1000)
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}-{millis}-{suffix}"


def to_dict(doc):
    if not doc:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    d.pop("seq", None)
    return d


def create_document(collection_name: str, data: Dict[str, Any], doc_id: Optional[str] = None) -> str:
    """Insert a record and return its id. Timestamps are added when absent."""
    doc = dict(data)
    now = utcnow()
    doc.setdefault("created_at", now)
    doc.setdefault("updated_at", now)
    doc["seq"] = time.time_ns()
    if doc_id is not None:
        doc["_id"] = doc_id
    result = collection(collection_name).insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[List] = None,
) -> List[Dict[str, Any]]:
    cursor = collection(collection_name).find(filter_dict or {})
    cursor = cursor.sort(sort or NEWEST_FIRST)
    if limit:
        cursor = cursor.limit(limit)
    return [to_dict(d) for d in cursor]


def get_document(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    return to_dict(collection(collection_name).find_one({"_id": doc_id}))


def update_document(collection_name: str, doc_id: str, updates: Dict[str, Any]) -> bool:
    updates = dict(updates)
    updates["updated_at"] = utcnow()
    res = collection(collection_name).update_one({"_id": doc_id}, {"$set": updates})
    return res.matched_count > 0


def delete_document(collection_name: str, doc_id: str) -> bool:
    res = collection(collection_name).delete_one({"_id": doc_id})
    return res.deleted_count > 0


def delete_documents(collection_name: str, filter_dict: Dict[str, Any]) -> int:
    res = collection(collection_name).delete_many(filter_dict)
    return res.deleted_count


def clear_all_data() -> None:
    """Drop every store collection. Used to reset a demo instance."""
    for name in ALL_COLLECTIONS:
        collection(name).drop()
    logger.warning("All EM Luxury Cars data cleared")
