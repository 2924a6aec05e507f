"""
Per-user notifications. Only the newest `notification_limit` are kept.
"""

from typing import Dict, List

from loguru import logger

import database
from config import get_settings
from database import NOTIFICATIONS, create_document, get_documents, new_id, utcnow


def add_notification(user_id: str, type: str, title: str, message: str, read: bool = False) -> Dict:
    doc = {
        "user_id": user_id,
        "type": type,
        "title": title,
        "message": message,
        "read": read,
        "date": utcnow(),
    }
    notification_id = create_document(NOTIFICATIONS, doc, doc_id=new_id("NTF"))
    _trim(user_id)
    logger.debug(f"Notification {notification_id} ({type}) queued for {user_id}")
    return {"id": notification_id, **doc}


def _trim(user_id: str) -> None:
    limit = get_settings().notification_limit
    stale = database.collection(NOTIFICATIONS).find(
        {"user_id": user_id}, {"_id": 1}
    ).sort(database.NEWEST_FIRST).skip(limit)
    stale_ids = [d["_id"] for d in stale]
    if stale_ids:
        database.delete_documents(NOTIFICATIONS, {"_id": {"$in": stale_ids}})


def get_notifications(user_id: str) -> List[Dict]:
    return get_documents(NOTIFICATIONS, {"user_id": user_id})


def mark_notification_read(user_id: str, notification_id: str) -> bool:
    res = database.collection(NOTIFICATIONS).update_one(
        {"_id": notification_id, "user_id": user_id}, {"$set": {"read": True}}
    )
    return res.matched_count > 0


def mark_all_notifications_read(user_id: str) -> int:
    res = database.collection(NOTIFICATIONS).update_many(
        {"user_id": user_id, "read": False}, {"$set": {"read": True}}
    )
    return res.modified_count


def get_unread_notification_count(user_id: str) -> int:
    return database.collection(NOTIFICATIONS).count_documents({"user_id": user_id, "read": False})
