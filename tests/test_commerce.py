from datetime import date

import pytest

import accounts
import commerce
import inventory
import schemas
from errors import ValidationError
from notifications import get_notifications


def test_add_to_cart_merges_same_item_and_type():
    commerce.add_to_cart("s1", {"item_id": "c1", "name": "GT", "price": 1000, "type": "Sale"})
    commerce.add_to_cart("s1", {"item_id": "c1", "name": "GT", "price": 1000, "type": "Sale"})
    items = commerce.add_to_cart("s1", {"item_id": "c1", "name": "GT rental", "price": 50, "type": "Rental", "rent_days": 7})

    assert [(i["type"], i["quantity"]) for i in items] == [("Sale", 2), ("Rental", 1)]
    assert items[0]["rent_days"] == 0
    assert items[1]["rent_days"] == 0
    assert commerce.cart_count(items) == 3
    assert commerce.cart_total(items) == 2050


def test_remove_cart_item_by_index():
    commerce.add_to_cart("s1", {"item_id": "a", "name": "A", "price": 1, "type": "Part"})
    commerce.add_to_cart("s1", {"item_id": "b", "name": "B", "price": 2, "type": "Part"})

    assert [i["item_id"] for i in commerce.remove_cart_item("s1", 0)] == ["b"]
    assert commerce.remove_cart_item("s1", 5) is None


def test_checkout_empty_cart_is_rejected():
    with pytest.raises(ValidationError, match="empty"):
        commerce.checkout("s1", None)


def test_checkout_as_customer_creates_order_and_clears_cart(identity):
    accounts.register_or_update_user(identity)
    session = accounts.create_user_session(identity)
    commerce.add_to_cart("g-100", {"item_id": "p", "name": "Brake pads", "price": 300, "type": "Part"})
    commerce.add_to_cart("g-100", {"item_id": "p", "name": "Brake pads", "price": 300, "type": "Part"})

    order = commerce.checkout("g-100", session)

    assert order["id"].startswith("EM-")
    assert order["total"] == 600
    assert order["items"] == [{"name": "Brake pads", "price": 300, "quantity": 2, "type": "Part"}]
    assert order["status"] == "pending"
    assert order["status_history"][0]["note"] == "Order placed"
    assert commerce.get_cart("g-100") == []
    schemas.Order(**order)


def test_checkout_without_customer_only_clears_cart():
    admin = accounts.create_admin_session()
    commerce.add_to_cart(admin["token"], {"item_id": "p", "name": "Oil", "price": 30, "type": "Part"})

    assert commerce.checkout(admin["token"], admin) is None
    assert commerce.get_cart(admin["token"]) == []
    assert commerce.get_all_orders() == []


def test_quote_rental_counts_days():
    quote = commerce.quote_rental(date(2026, 3, 1), date(2026, 3, 4), 500)
    assert quote["days"] == 3
    assert quote["total"] == 1500


def test_quote_rental_defaults_rate_and_parses_strings():
    quote = commerce.quote_rental("2026-03-01", "2026-03-02")
    assert quote["daily_rate"] == 1200
    assert quote["total"] == 1200


@pytest.mark.parametrize("start,end", [("2026-03-02", "2026-03-02"), ("2026-03-05", "2026-03-01"), ("soon", "later")])
def test_quote_rental_rejects_bad_ranges(start, end):
    with pytest.raises(ValidationError, match="valid dates"):
        commerce.quote_rental(start, end)


def test_update_order_status_appends_history_and_notifies():
    order = commerce.add_order("u1", [{"name": "GT", "price": 10, "quantity": 1, "type": "Sale"}], 10)

    assert commerce.update_order_status(order["id"], "shipped") is True
    assert commerce.update_order_status(order["id"], "on-hold", "Waiting for papers") is True

    stored = commerce.get_order(order["id"])
    assert stored["status"] == "on-hold"
    assert [h["status"] for h in stored["status_history"]] == ["pending", "shipped", "on-hold"]
    assert stored["status_history"][1]["note"] == "Status updated to shipped"
    assert stored["status_history"][2]["note"] == "Waiting for papers"
    messages = [n["message"] for n in get_notifications("u1")]
    assert messages[0] == f"Your order #{order['id']} status changed to: on-hold"
    assert messages[1] == f"Your order #{order['id']} has been shipped"


def test_update_order_status_unknown_order():
    assert commerce.update_order_status("EM-missing", "shipped") is False


def test_all_orders_are_joined_with_customer(identity):
    accounts.register_or_update_user(identity)
    commerce.add_order("g-100", [], 1)
    commerce.add_order("ghost", [], 2)

    orders = commerce.get_all_orders()

    assert [o["user_name"] for o in orders] == ["Deleted User", "Jane Driver"]
    assert orders[0]["user_email"] == "N/A"
    assert orders[1]["user_email"] == "jane@example.com"


def test_add_rental_uses_fleet_rate():
    car = inventory.add_rental_car({"name": "Huracan", "daily_rate": 900})

    rental = commerce.add_rental("u1", {
        "rental_car_id": car["id"], "start_date": date(2026, 5, 1), "end_date": date(2026, 5, 3),
    })

    assert rental["id"].startswith("RNT-")
    assert rental["car_name"] == "Huracan"
    assert rental["total_cost"] == 1800
    assert rental["status"] == "confirmed"
    assert get_notifications("u1")[0]["title"] == "Rental Confirmed!"
    schemas.Rental(**rental)


def test_update_rental_status():
    rental = commerce.add_rental("u1", {"start_date": "2026-05-01", "end_date": "2026-05-02"})

    assert commerce.update_rental_status(rental["id"], "active") is True
    assert commerce.get_user_rentals("u1")[0]["status"] == "active"
    assert get_notifications("u1")[0]["message"] == f"Your rental #{rental['id']} status: active"
    assert commerce.update_rental_status("RNT-missing", "active") is False


def test_wishlist_ignores_duplicates():
    assert commerce.add_to_wishlist("u1", {"item_id": "CAR-1", "name": "GT"}) is True
    assert commerce.add_to_wishlist("u1", {"item_id": "CAR-1", "name": "GT"}) is False
    assert commerce.add_to_wishlist("u1", {"item_id": "CAR-2", "name": "SF90"}) is True

    assert [w["item_id"] for w in commerce.get_user_wishlist("u1")] == ["CAR-1", "CAR-2"]
    assert commerce.remove_from_wishlist("u1", "CAR-1") is True
    assert commerce.remove_from_wishlist("u1", "CAR-1") is False


def test_booking_history_merges_orders_and_rentals():
    commerce.add_order("u1", [{"name": "Wheel", "price": 5, "quantity": 1, "type": "Part"}], 5)
    commerce.add_rental("u1", {"car_name": "Urus", "start_date": "2026-05-01", "end_date": "2026-05-02"})

    history = commerce.get_booking_history("u1")

    by_kind = {b["kind"]: b for b in history}
    assert len(history) == 2
    assert by_kind["order"]["name"] == "Wheel"
    assert by_kind["rental"]["total"] == 1200
    assert history[0]["date"] >= history[1]["date"]
