"""
Accounts: user records, bans, sessions and the sign-in flows.

Users are keyed by the subject of their Google ID token. There are no
passwords for customers; the single admin account uses the configured
credential pair.
"""

import secrets
from datetime import timedelta
from typing import Dict, List, Optional, Union

from loguru import logger

import database
from config import ADMIN_EMAIL_ADDRESS, ADMIN_NAME, DEMO_IDENTITY, get_settings
from database import (
    CARTS, INBOX_MESSAGES, NOTIFICATIONS, ORDERS, RENTALS, SESSIONS, TICKETS,
    USERS, WISHLIST, create_document, get_document, get_documents, to_dict,
    utcnow,
)
from errors import AuthenticationError, BannedError, ForbiddenError
from notifications import add_notification
from tokens import decode_jwt_payload, identity_from_payload

DEFAULT_BAN_REASON = "Violation of terms of service"


# --------------- Users ----------------------------------------------------

def get_user(google_id: str) -> Optional[Dict]:
    return get_document(USERS, google_id)


def register_or_update_user(identity: Dict) -> Dict:
    """Create the user on first sign-in, otherwise refresh their profile."""
    google_id = identity["google_id"]
    now = utcnow()
    existing = get_user(google_id)
    if existing:
        database.collection(USERS).update_one(
            {"_id": google_id},
            {"$set": {
                "name": identity.get("name"),
                "email": identity.get("email"),
                "picture": identity.get("picture"),
                "last_login": now,
                "has_logged_in_before": True,
            }},
        )
    else:
        create_document(USERS, {
            "google_id": google_id,
            "name": identity.get("name"),
            "email": identity.get("email"),
            "picture": identity.get("picture"),
            "phone": "",
            "address": "",
            "registered_at": now,
            "last_login": now,
            "has_logged_in_before": True,
            "is_banned": False,
            "banned_until": None,
            "banned_reason": None,
            "banned_at": None,
        }, doc_id=google_id)
        logger.info(f"Registered new user {google_id}")
    return get_user(google_id)


def update_user_profile(google_id: str, updates: Dict) -> bool:
    updates = {k: v for k, v in updates.items() if v is not None}
    updates["last_updated"] = utcnow()
    res = database.collection(USERS).update_one({"_id": google_id}, {"$set": updates})
    return res.matched_count > 0


def get_all_users(query: str = "") -> List[Dict]:
    """All users, with lapsed timed bans lifted. `query` filters on name/email."""
    users = get_documents(USERS)
    now = utcnow()
    for user in users:
        if user.get("is_banned") and user.get("banned_until") and now >= user["banned_until"]:
            unban_user(user["google_id"])
            user.update(is_banned=False, banned_until=None, banned_reason=None, banned_at=None)
    if query:
        q = query.lower()
        users = [
            u for u in users
            if q in (u.get("name") or "").lower() or q in (u.get("email") or "").lower()
        ]
    return users


# --------------- Bans -----------------------------------------------------

def ban_user(google_id: str, duration: Union[int, str], reason: Optional[str] = None) -> bool:
    """Ban for `duration` hours, or for good when duration is "permanent"."""
    if not get_user(google_id):
        return False
    now = utcnow()
    banned_until = None
    if str(duration) != "permanent":
        banned_until = now + timedelta(hours=int(duration))
    reason = reason or DEFAULT_BAN_REASON
    database.collection(USERS).update_one({"_id": google_id}, {"$set": {
        "is_banned": True,
        "banned_until": banned_until,
        "banned_reason": reason,
        "banned_at": now,
    }})
    add_notification(
        google_id, type="account", title="Account Suspended",
        message=f"Your account has been suspended. Reason: {reason}",
    )
    logger.info(f"User {google_id} banned ({duration}): {reason}")
    return True


def unban_user(google_id: str) -> bool:
    res = database.collection(USERS).update_one({"_id": google_id}, {"$set": {
        "is_banned": False,
        "banned_until": None,
        "banned_reason": None,
        "banned_at": None,
    }})
    if res.matched_count == 0:
        return False
    add_notification(
        google_id, type="account", title="Account Restored",
        message="Your account has been restored. You can now access all features.",
    )
    logger.info(f"User {google_id} unbanned")
    return True


def is_user_banned(google_id: str) -> Dict:
    """Current ban status. A timed ban that has run out is lifted here."""
    user = get_user(google_id)
    if not user or not user.get("is_banned"):
        return {"banned": False}

    reason = user.get("banned_reason")
    banned_until = user.get("banned_until")
    if banned_until:
        now = utcnow()
        if now >= banned_until:
            unban_user(google_id)
            return {"banned": False}
        remaining = int((banned_until - now).total_seconds())
        hours = remaining // 3600
        minutes = (remaining % 3600) // 60
        return {
            "banned": True,
            "permanent": False,
            "remaining": f"{hours}h {minutes}m",
            "reason": reason,
            "message": f"Your account is suspended for {hours}h {minutes}m. Reason: {reason}",
        }

    return {
        "banned": True,
        "permanent": True,
        "reason": reason,
        "message": f"Your account is permanently suspended. Reason: {reason}",
    }


def delete_user(google_id: str) -> bool:
    """Remove a user together with everything that points at them."""
    existed = database.delete_document(USERS, google_id)
    for name in (ORDERS, WISHLIST, RENTALS, NOTIFICATIONS, TICKETS):
        database.delete_documents(name, {"user_id": google_id})
    database.delete_documents(INBOX_MESSAGES, {"$or": [{"from_id": google_id}, {"to_id": google_id}]})
    database.delete_documents(SESSIONS, {"google_id": google_id})
    database.delete_documents(CARTS, {"owner": google_id})
    logger.info(f"Deleted user {google_id} and related records")
    return existed


# --------------- Sessions -------------------------------------------------

def _new_session(doc: Dict) -> Dict:
    token = secrets.token_urlsafe(32)
    create_document(SESSIONS, doc, doc_id=token)
    return {"token": token, **doc}


def create_user_session(identity: Dict, is_new_user: bool = False) -> Dict:
    return _new_session({
        "is_logged_in": True,
        "user_type": "user",
        "google_id": identity["google_id"],
        "name": identity.get("name"),
        "email": identity.get("email"),
        "picture": identity.get("picture"),
        "login_time": utcnow(),
        "is_new_user": is_new_user,
    })


def create_admin_session() -> Dict:
    return _new_session({
        "is_logged_in": True,
        "user_type": "admin",
        "google_id": None,
        "name": ADMIN_NAME,
        "email": ADMIN_EMAIL_ADDRESS,
        "picture": None,
        "login_time": utcnow(),
    })


def get_session(token: Optional[str]) -> Optional[Dict]:
    if not token:
        return None
    session = to_dict(database.collection(SESSIONS).find_one({"_id": token}))
    if session:
        session["token"] = session.pop("id")
    return session


def end_session(token: Optional[str]) -> bool:
    if not token:
        return False
    database.delete_document(CARTS, token)
    return database.delete_document(SESSIONS, token)


# --------------- Sign-in flows --------------------------------------------

def _sign_in(identity: Dict) -> Dict:
    ban_status = is_user_banned(identity["google_id"])
    if ban_status["banned"]:
        logger.warning(f"Banned user {identity['google_id']} refused sign-in")
        raise BannedError(ban_status)

    is_new_user = get_user(identity["google_id"]) is None
    register_or_update_user(identity)
    session = create_user_session(identity, is_new_user)

    if is_new_user:
        add_notification(
            identity["google_id"], type="welcome",
            title="Welcome to EM Luxury Cars!",
            message="Your account has been created successfully.",
        )
    return session


def sign_in_with_google(credential: str) -> Dict:
    payload = decode_jwt_payload(credential)
    identity = identity_from_payload(payload, get_settings().google_client_id)
    if identity is None:
        raise AuthenticationError("Login failed. Please try again.")
    return _sign_in(identity)


def login_as_demo() -> Dict:
    return _sign_in(dict(DEMO_IDENTITY))


def admin_login(email: str, password: str) -> Optional[Dict]:
    settings = get_settings()
    if email == settings.admin_email and password == settings.admin_password:
        return create_admin_session()
    logger.warning("Invalid admin credentials")
    return None


def require_auth(session: Optional[Dict], role: str = "any") -> Dict:
    """Check a session may be used for `role` ("any", "user" or "admin")."""
    if not session or not session.get("is_logged_in"):
        raise AuthenticationError("Not logged in")

    if session.get("user_type") == "user":
        ban_status = is_user_banned(session["google_id"])
        if ban_status["banned"]:
            end_session(session.get("token"))
            raise BannedError(ban_status)

    if role in ("admin", "user") and session.get("user_type") != role:
        raise ForbiddenError("unauthorized")
    return session
