from datetime import timedelta

import pytest

import accounts
import commerce
import database
import support
from conftest import make_google_token
from database import utcnow
from errors import AuthenticationError, BannedError, ForbiddenError
from notifications import get_notifications


def test_register_creates_user_with_cleared_ban_fields(identity):
    user = accounts.register_or_update_user(identity)

    assert user["id"] == "g-100"
    assert user["phone"] == ""
    assert user["address"] == ""
    assert user["is_banned"] is False
    assert user["banned_until"] is None
    assert user["registered_at"] is not None


def test_register_existing_user_refreshes_profile_only(identity):
    accounts.register_or_update_user(identity)
    accounts.update_user_profile("g-100", {"phone": "555-0100"})

    accounts.register_or_update_user({**identity, "name": "Jane D."})
    user = accounts.get_user("g-100")

    assert user["name"] == "Jane D."
    assert user["phone"] == "555-0100"
    assert user["has_logged_in_before"] is True
    assert len(accounts.get_all_users()) == 1


def test_update_user_profile_unknown_user():
    assert accounts.update_user_profile("missing", {"phone": "1"}) is False


def test_get_all_users_filters_by_name_or_email(identity):
    accounts.register_or_update_user(identity)
    accounts.register_or_update_user({"google_id": "g-2", "name": "Bob", "email": "bob@cars.io"})

    assert [u["id"] for u in accounts.get_all_users("JANE")] == ["g-100"]
    assert [u["id"] for u in accounts.get_all_users("cars.io")] == ["g-2"]
    assert len(accounts.get_all_users("")) == 2


def test_timed_ban_reports_remaining_time(identity):
    accounts.register_or_update_user(identity)
    assert accounts.ban_user("g-100", 24, "Spam") is True

    status = accounts.is_user_banned("g-100")

    assert status["banned"] is True
    assert status["permanent"] is False
    assert status["remaining"] == "23h 59m"
    assert status["message"] == "Your account is suspended for 23h 59m. Reason: Spam"
    assert get_notifications("g-100")[0]["title"] == "Account Suspended"


def test_permanent_ban_uses_default_reason(identity):
    accounts.register_or_update_user(identity)
    accounts.ban_user("g-100", "permanent", None)

    status = accounts.is_user_banned("g-100")

    assert status["permanent"] is True
    assert status["reason"] == "Violation of terms of service"
    assert status["message"] == "Your account is permanently suspended. Reason: Violation of terms of service"


def test_expired_ban_is_lifted_on_check(identity, mongo_db):
    accounts.register_or_update_user(identity)
    accounts.ban_user("g-100", 1, "Late payment")
    mongo_db[database.USERS].update_one(
        {"_id": "g-100"}, {"$set": {"banned_until": utcnow() - timedelta(minutes=1)}}
    )

    assert accounts.is_user_banned("g-100") == {"banned": False}
    user = accounts.get_user("g-100")
    assert user["is_banned"] is False
    assert user["banned_reason"] is None
    assert get_notifications("g-100")[0]["title"] == "Account Restored"


def test_get_all_users_lifts_expired_bans(identity, mongo_db):
    accounts.register_or_update_user(identity)
    accounts.ban_user("g-100", 2, "x")
    mongo_db[database.USERS].update_one(
        {"_id": "g-100"}, {"$set": {"banned_until": utcnow() - timedelta(seconds=5)}}
    )

    users = accounts.get_all_users()

    assert users[0]["is_banned"] is False
    assert accounts.get_user("g-100")["is_banned"] is False


def test_ban_unknown_user_returns_false():
    assert accounts.ban_user("nobody", 5, "x") is False
    assert accounts.unban_user("nobody") is False
    assert accounts.is_user_banned("nobody") == {"banned": False}


def test_delete_user_cascades(identity):
    accounts.register_or_update_user(identity)
    accounts.register_or_update_user({"google_id": "g-2", "name": "Bob", "email": "bob@x.com"})
    session = accounts.create_user_session(identity)
    commerce.add_order("g-100", [{"name": "Part", "price": 10, "quantity": 1, "type": "Part"}], 10)
    commerce.add_to_wishlist("g-100", {"item_id": "CAR-1", "name": "GT"})
    commerce.add_rental("g-100", {"start_date": "2026-01-01", "end_date": "2026-01-03"})
    commerce.add_to_cart("g-100", {"item_id": "p1", "name": "Filter", "price": 5, "type": "Part"})
    support.create_ticket("g-100", "Help", "Engine noise")
    support.send_inbox_message("g-100", "admin", "Hi", "Hello")
    support.send_inbox_message("admin", "g-2", "Promo", "Offer")

    assert accounts.delete_user("g-100") is True

    assert accounts.get_user("g-100") is None
    assert commerce.get_user_orders("g-100") == []
    assert commerce.get_user_wishlist("g-100") == []
    assert commerce.get_user_rentals("g-100") == []
    assert commerce.get_cart("g-100") == []
    assert get_notifications("g-100") == []
    assert support.get_user_tickets("g-100") == []
    assert accounts.get_session(session["token"]) is None
    inbox = support.get_admin_inbox()
    assert [m["to_id"] for m in inbox] == ["g-2"]


def test_sign_in_with_google_registers_and_welcomes_new_user():
    session = accounts.sign_in_with_google(make_google_token("g-7", name="New Person"))

    assert session["is_new_user"] is True
    assert session["user_type"] == "user"
    assert accounts.get_user("g-7")["name"] == "New Person"
    assert get_notifications("g-7")[0]["type"] == "welcome"

    again = accounts.sign_in_with_google(make_google_token("g-7", name="New Person"))
    assert again["is_new_user"] is False
    assert len(get_notifications("g-7")) == 1


def test_sign_in_with_invalid_credential():
    with pytest.raises(AuthenticationError):
        accounts.sign_in_with_google("not-a-token")


def test_banned_user_cannot_sign_in(identity):
    accounts.register_or_update_user(identity)
    accounts.ban_user("g-100", "permanent", "Fraud")

    with pytest.raises(BannedError) as exc:
        accounts.sign_in_with_google(make_google_token("g-100"))
    assert exc.value.ban_status["reason"] == "Fraud"


def test_login_as_demo_uses_fixed_identity():
    session = accounts.login_as_demo()
    assert session["google_id"] == "demo-user-123"
    assert accounts.get_user("demo-user-123")["email"] == "demo@example.com"


def test_admin_login_checks_credentials():
    assert accounts.admin_login("admin", "wrong") is None
    session = accounts.admin_login("admin", "admin")
    assert session["user_type"] == "admin"
    assert session["email"] == "admin@emcars.com"
    assert accounts.get_session(session["token"])["name"] == "Administrator"


def test_end_session_drops_session_cart(mongo_db):
    session = accounts.create_admin_session()
    commerce.add_to_cart(session["token"], {"item_id": "p1", "name": "Wiper", "price": 40, "type": "Part"})
    assert accounts.end_session(session["token"]) is True
    assert accounts.get_session(session["token"]) is None
    assert commerce.get_cart(session["token"]) == []
    assert mongo_db["cart"].count_documents({"_id": session["token"]}) == 0
    assert accounts.end_session(None) is False


def test_require_auth_roles(identity):
    user = accounts.create_user_session(identity)
    admin = accounts.create_admin_session()

    with pytest.raises(AuthenticationError):
        accounts.require_auth(None)
    assert accounts.require_auth(user, "user") is user
    assert accounts.require_auth(admin, "any") is admin
    with pytest.raises(ForbiddenError):
        accounts.require_auth(user, "admin")
    with pytest.raises(ForbiddenError):
        accounts.require_auth(admin, "user")


def test_require_auth_logs_out_banned_user(identity):
    accounts.register_or_update_user(identity)
    session = accounts.create_user_session(identity)
    accounts.ban_user("g-100", 3, "Abuse")

    with pytest.raises(BannedError):
        accounts.require_auth(accounts.get_session(session["token"]), "user")
    assert accounts.get_session(session["token"]) is None
