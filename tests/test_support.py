import accounts
import support
from notifications import get_notifications


def test_create_ticket_denormalizes_user(identity):
    accounts.register_or_update_user(identity)

    ticket = support.create_ticket("g-100", "Warranty", "Paint chip")
    orphan = support.create_ticket("ghost", "Hello", "Anyone?")

    assert ticket["id"].startswith("TKT-")
    assert ticket["user_name"] == "Jane Driver"
    assert ticket["status"] == "open"
    assert ticket["responses"] == []
    assert orphan["user_name"] == "Unknown"
    assert orphan["user_email"] == "Unknown"


def test_admin_response_moves_ticket_in_progress():
    ticket = support.create_ticket("u1", "Noise", "Rattle")

    assert support.add_ticket_response(ticket["id"], "Bring it in") is True

    stored = support.get_ticket(ticket["id"])
    assert stored["status"] == "in-progress"
    assert stored["responses"][0]["message"] == "Bring it in"
    assert stored["responses"][0]["from"] == "admin"
    assert get_notifications("u1")[0]["message"] == f"Admin responded to your ticket #{ticket['id']}"
    assert support.add_ticket_response("TKT-missing", "x") is False


def test_ticket_status_filters():
    a = support.create_ticket("u1", "a", "a")
    b = support.create_ticket("u1", "b", "b")
    c = support.create_ticket("u1", "c", "c")
    support.add_ticket_response(b["id"], "on it")
    support.close_ticket(c["id"])

    assert {t["id"] for t in support.get_all_tickets("open")} == {a["id"], b["id"]}
    assert [t["id"] for t in support.get_all_tickets("resolved")] == [c["id"]]
    assert len(support.get_all_tickets()) == 3


def test_owner_can_edit_only_open_tickets():
    ticket = support.create_ticket("u1", "Old", "Old body")

    assert support.update_ticket(ticket["id"], "u2", subject="Hijack") is False
    assert support.update_ticket(ticket["id"], "u1", subject="New") is True
    stored = support.get_ticket(ticket["id"])
    assert stored["subject"] == "New"
    assert stored["message"] == "Old body"

    support.add_ticket_response(ticket["id"], "reply")
    assert support.update_ticket(ticket["id"], "u1", message="Too late") is False


def test_delete_ticket_requires_owner():
    ticket = support.create_ticket("u1", "s", "m")
    assert support.delete_ticket(ticket["id"], "u2") is False
    assert support.delete_ticket(ticket["id"], "u1") is True
    assert support.get_ticket(ticket["id"]) is None


def test_contact_messages_lifecycle():
    first = support.save_contact_message({"name": "A", "email": "a@x.com", "message": "Price?"})
    second = support.save_contact_message({"name": "B", "email": "b@x.com", "message": "Hours?"})

    assert [m["id"] for m in support.get_contact_messages()] == [second["id"], first["id"]]
    assert first["read"] is False
    assert support.mark_message_read(first["id"]) is True
    assert support.mark_all_messages_read() == 1
    assert all(m["read"] for m in support.get_contact_messages())
    assert support.delete_message(first["id"]) is True
    assert support.delete_message(first["id"]) is False


def test_inbox_message_from_admin_notifies_user(identity):
    accounts.register_or_update_user(identity)

    msg = support.send_inbox_message("admin", "g-100", "Your car is ready", "Come by")

    assert msg["from_name"] == "Admin"
    assert msg["to_name"] == "Jane Driver"
    assert msg["read"] is False
    assert get_notifications("g-100")[0]["title"] == "New Message from Admin"
    assert support.get_unread_inbox_count("g-100") == 1
    support.mark_inbox_message_read(msg["id"])
    assert support.get_unread_inbox_count("g-100") == 0


def test_message_to_admin_does_not_notify_and_counts_for_admin():
    msg = support.send_inbox_message("u1", "admin", "Question", "Body")

    assert msg["from_name"] == "Unknown"
    assert get_notifications("admin") == []
    assert support.get_unread_inbox_count("admin") == 1


def test_reply_notifies_the_other_party():
    msg = support.send_inbox_message("admin", "u1", "Hi", "Body")

    assert support.reply_to_inbox_message(msg["id"], "Thanks", "u1") is True
    assert support.reply_to_inbox_message(msg["id"], "Welcome", "admin") is True

    stored = support.get_inbox_message(msg["id"])
    assert [r["from"] for r in stored["replies"]] == ["u1", "admin"]
    assert stored["replies"][1]["from_name"] == "Admin"
    assert get_notifications("u1")[0]["message"] == "Reply to: Hi"
    assert support.reply_to_inbox_message("INBOX-missing", "x", "u1") is False


def test_user_inbox_includes_sent_and_received():
    support.send_inbox_message("admin", "u1", "to u1", "b")
    support.send_inbox_message("u1", "admin", "from u1", "b")
    support.send_inbox_message("admin", "u2", "to u2", "b")

    subjects = [m["subject"] for m in support.get_user_inbox_messages("u1")]

    assert subjects == ["from u1", "to u1"]
    assert len(support.get_admin_inbox()) == 3


def test_toggle_like():
    msg = support.send_inbox_message("admin", "u1", "s", "m")

    assert support.toggle_message_like(msg["id"], "u1") is True
    assert support.has_user_liked_message(msg["id"], "u1") is True
    assert support.toggle_message_like(msg["id"], "u1") is False
    assert support.has_user_liked_message(msg["id"], "u1") is False
    assert support.toggle_message_like("INBOX-missing", "u1") is None
