"""
Customer support: tickets, contact-form messages and the admin/user inbox.
"""

from typing import Dict, List, Optional

from loguru import logger

import database
from accounts import get_user
from config import ADMIN_EMAIL_ADDRESS, ADMIN_ID
from database import (
    CONTACT_MESSAGES, INBOX_MESSAGES, TICKETS, create_document, get_document,
    get_documents, new_id, utcnow,
)
from notifications import add_notification

OPEN_STATUSES = ("open", "in-progress")


# --------------- Support tickets ------------------------------------------

def create_ticket(user_id: str, subject: str, message: str) -> Dict:
    user = get_user(user_id)
    ticket_id = create_document(TICKETS, {
        "user_id": user_id,
        "user_name": user["name"] if user else "Unknown",
        "user_email": user["email"] if user else "Unknown",
        "subject": subject,
        "message": message,
        "status": "open",
        "responses": [],
    }, doc_id=new_id("TKT"))
    logger.info(f"Ticket {ticket_id} opened by {user_id}")
    return get_document(TICKETS, ticket_id)


def get_ticket(ticket_id: str) -> Optional[Dict]:
    return get_document(TICKETS, ticket_id)


def get_user_tickets(user_id: str) -> List[Dict]:
    return get_documents(TICKETS, {"user_id": user_id})


def get_all_tickets(status_filter: str = "all") -> List[Dict]:
    """`status_filter` is "open" (open or in progress), "resolved" or "all"."""
    if status_filter == "open":
        return get_documents(TICKETS, {"status": {"$in": list(OPEN_STATUSES)}})
    if status_filter == "resolved":
        return get_documents(TICKETS, {"status": "resolved"})
    return get_documents(TICKETS)


def add_ticket_response(ticket_id: str, message: str) -> bool:
    ticket = get_ticket(ticket_id)
    if not ticket:
        return False
    database.collection(TICKETS).update_one(
        {"_id": ticket_id},
        {
            "$push": {"responses": {"message": message, "from": ADMIN_ID, "date": utcnow()}},
            "$set": {"status": "in-progress"},
        },
    )
    add_notification(
        ticket["user_id"], type="ticket_update", title="Ticket Response",
        message=f"Admin responded to your ticket #{ticket_id}",
    )
    return True


def close_ticket(ticket_id: str) -> bool:
    res = database.collection(TICKETS).update_one({"_id": ticket_id}, {"$set": {"status": "resolved"}})
    return res.matched_count > 0


def update_ticket(ticket_id: str, user_id: str, subject: Optional[str] = None,
                  message: Optional[str] = None) -> bool:
    """Owners may edit a ticket only while nobody has picked it up."""
    ticket = database.collection(TICKETS).find_one({"_id": ticket_id, "user_id": user_id})
    if not ticket or ticket["status"] != "open":
        return False
    updates = {}
    if subject:
        updates["subject"] = subject
    if message:
        updates["message"] = message
    return database.update_document(TICKETS, ticket_id, updates)


def delete_ticket(ticket_id: str, user_id: str) -> bool:
    res = database.collection(TICKETS).delete_one({"_id": ticket_id, "user_id": user_id})
    return res.deleted_count > 0


# --------------- Contact messages -----------------------------------------

def save_contact_message(message: Dict) -> Dict:
    msg_id = create_document(
        CONTACT_MESSAGES, {**message, "date": utcnow(), "read": False}, doc_id=new_id("MSG")
    )
    return get_document(CONTACT_MESSAGES, msg_id)


def get_contact_messages() -> List[Dict]:
    return get_documents(CONTACT_MESSAGES)


def mark_message_read(message_id: str) -> bool:
    res = database.collection(CONTACT_MESSAGES).update_one({"_id": message_id}, {"$set": {"read": True}})
    return res.matched_count > 0


def mark_all_messages_read() -> int:
    res = database.collection(CONTACT_MESSAGES).update_many({"read": False}, {"$set": {"read": True}})
    return res.modified_count


def delete_message(message_id: str) -> bool:
    return database.delete_document(CONTACT_MESSAGES, message_id)


# --------------- Inbox ----------------------------------------------------

def _party(party_id: str) -> Optional[Dict]:
    if party_id == ADMIN_ID:
        return {"name": "Admin", "email": ADMIN_EMAIL_ADDRESS}
    return get_user(party_id)


def send_inbox_message(from_id: str, to_id: str, subject: str, message: str) -> Dict:
    """Messages go either way between the admin and a customer."""
    sender, recipient = _party(from_id), _party(to_id)
    msg_id = create_document(INBOX_MESSAGES, {
        "from_id": from_id,
        "to_id": to_id,
        "from_name": sender["name"] if sender else "Unknown",
        "to_name": recipient["name"] if recipient else "Unknown",
        "subject": subject,
        "message": message,
        "date": utcnow(),
        "read": False,
        "replies": [],
        "likes": [],
    }, doc_id=new_id("INBOX"))

    if to_id != ADMIN_ID:
        add_notification(to_id, type="inbox", title="New Message from Admin", message=subject)
    return get_document(INBOX_MESSAGES, msg_id)


def get_inbox_message(message_id: str) -> Optional[Dict]:
    return get_document(INBOX_MESSAGES, message_id)


def get_user_inbox_messages(user_id: str) -> List[Dict]:
    return get_documents(INBOX_MESSAGES, {"$or": [{"to_id": user_id}, {"from_id": user_id}]})


def get_admin_inbox() -> List[Dict]:
    return get_documents(INBOX_MESSAGES)


def mark_inbox_message_read(message_id: str) -> bool:
    res = database.collection(INBOX_MESSAGES).update_one({"_id": message_id}, {"$set": {"read": True}})
    return res.matched_count > 0


def reply_to_inbox_message(message_id: str, reply_text: str, from_id: str) -> bool:
    original = get_inbox_message(message_id)
    if not original:
        return False
    sender = _party(from_id)
    database.collection(INBOX_MESSAGES).update_one({"_id": message_id}, {"$push": {"replies": {
        "message": reply_text,
        "from": from_id,
        "from_name": sender["name"] if sender else "Unknown",
        "date": utcnow(),
    }}})

    recipient_id = original["to_id"] if original["from_id"] == from_id else original["from_id"]
    if recipient_id != ADMIN_ID:
        add_notification(
            recipient_id, type="inbox", title="New Reply",
            message=f"Reply to: {original['subject']}",
        )
    return True


def get_unread_inbox_count(user_id: str) -> int:
    return database.collection(INBOX_MESSAGES).count_documents({"to_id": user_id, "read": False})


def toggle_message_like(message_id: str, user_id: str) -> Optional[bool]:
    """True when the message is now liked, False when unliked, None if missing."""
    msg = get_inbox_message(message_id)
    if not msg:
        return None
    if user_id in (msg.get("likes") or []):
        database.collection(INBOX_MESSAGES).update_one({"_id": message_id}, {"$pull": {"likes": user_id}})
        return False
    database.collection(INBOX_MESSAGES).update_one({"_id": message_id}, {"$push": {"likes": user_id}})
    return True


def has_user_liked_message(message_id: str, user_id: str) -> bool:
    msg = get_inbox_message(message_id)
    return bool(msg and user_id in (msg.get("likes") or []))
