"""
Cart, checkout, orders, rentals and wishlists.
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Union

from loguru import logger

import database
from config import get_settings
from database import (
    CARTS, ORDERS, RENTALS, USERS, WISHLIST, create_document, get_document,
    get_documents, new_id, utcnow,
)
from errors import ValidationError
from inventory import get_rental_car
from notifications import add_notification

ORDER_STATUS_MESSAGES = {
    "pending": "is pending confirmation",
    "confirmed": "has been confirmed",
    "processing": "is being processed",
    "shipped": "has been shipped",
    "out-for-delivery": "is out for delivery",
    "delivered": "has been delivered",
    "completed": "has been completed",
    "cancelled": "has been cancelled",
}


# --------------- Cart -----------------------------------------------------

def get_cart(owner: str) -> List[Dict]:
    cart = database.collection(CARTS).find_one({"_id": owner})
    return list(cart["items"]) if cart else []


def _save_cart(owner: str, items: List[Dict]) -> None:
    database.collection(CARTS).update_one(
        {"_id": owner},
        {"$set": {"owner": owner, "items": items, "updated_at": utcnow()}},
        upsert=True,
    )


def add_to_cart(owner: str, item: Dict) -> List[Dict]:
    """Add one unit of `item`; the same id and type bumps the quantity instead."""
    items = get_cart(owner)
    for line in items:
        if line["item_id"] == item["item_id"] and line["type"] == item["type"]:
            line["quantity"] += 1
            break
    else:
        items.append({
            "item_id": item["item_id"],
            "name": item["name"],
            "price": item["price"],
            "image": item.get("image"),
            "type": item["type"],
            "quantity": 1,
            "rent_days": 0,
        })
    _save_cart(owner, items)
    return items


def remove_cart_item(owner: str, index: int) -> Optional[List[Dict]]:
    items = get_cart(owner)
    if index < 0 or index >= len(items):
        return None
    items.pop(index)
    _save_cart(owner, items)
    return items


def clear_cart(owner: str) -> None:
    _save_cart(owner, [])


def cart_count(items: List[Dict]) -> int:
    return sum(line["quantity"] for line in items)


def cart_total(items: List[Dict]) -> float:
    return sum(line["price"] * line["quantity"] for line in items)


def checkout(owner: str, session: Optional[Dict]) -> Optional[Dict]:
    """
    Empty the cart. When a customer is signed in the cart becomes an order,
    which is returned; otherwise the cart is simply cleared.
    """
    items = get_cart(owner)
    if not items:
        raise ValidationError("Your cart is empty!")

    order = None
    if session and session.get("is_logged_in") and session.get("user_type") == "user":
        order = add_order(
            session["google_id"],
            [
                {"name": i["name"], "price": i["price"], "quantity": i["quantity"], "type": i["type"]}
                for i in items
            ],
            cart_total(items),
        )
    clear_cart(owner)
    return order


# --------------- Rental quote ---------------------------------------------

def _as_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("Please select valid dates.")


def quote_rental(start: Union[date, str], end: Union[date, str], daily_rate: Optional[float] = None) -> Dict:
    start_d, end_d = _as_date(start), _as_date(end)
    if end_d <= start_d:
        raise ValidationError("Please select valid dates.")
    rate = daily_rate if daily_rate is not None else get_settings().default_daily_rate
    days = (end_d - start_d).days
    return {
        "start_date": start_d.isoformat(),
        "end_date": end_d.isoformat(),
        "days": days,
        "daily_rate": rate,
        "total": days * rate,
    }


# --------------- Orders ---------------------------------------------------

def _owner_lookup() -> Dict[str, Dict]:
    return {u["_id"]: u for u in database.collection(USERS).find()}


def add_order(user_id: str, items: List[Dict], total: float) -> Dict:
    now = utcnow()
    doc = {
        "user_id": user_id,
        "items": items,
        "total": total,
        "date": now,
        "status": "pending",
        "status_history": [{"status": "pending", "date": now, "note": "Order placed"}],
    }
    order_id = create_document(ORDERS, doc, doc_id=new_id("EM"))
    add_notification(
        user_id, type="order", title="Order Placed!",
        message=f"Your order #{order_id} has been placed successfully.",
    )
    logger.info(f"Order {order_id} placed by {user_id} ({total:.2f})")
    return get_document(ORDERS, order_id)


def get_user_orders(user_id: str) -> List[Dict]:
    return get_documents(ORDERS, {"user_id": user_id})


def get_order(order_id: str) -> Optional[Dict]:
    return get_document(ORDERS, order_id)


def get_all_orders() -> List[Dict]:
    """Every order, newest first, with the customer's details attached."""
    users = _owner_lookup()
    orders = []
    for order in get_documents(ORDERS):
        user = users.get(order["user_id"])
        order["user_name"] = user["name"] if user else "Deleted User"
        order["user_email"] = user["email"] if user else "N/A"
        order["user_picture"] = user.get("picture") if user else None
        orders.append(order)
    return orders


def update_order_status(order_id: str, status: str, note: str = "") -> bool:
    order = get_document(ORDERS, order_id)
    if not order:
        logger.warning(f"Order {order_id} not found")
        return False
    database.collection(ORDERS).update_one(
        {"_id": order_id},
        {
            "$set": {"status": status, "updated_at": utcnow()},
            "$push": {"status_history": {
                "status": status,
                "date": utcnow(),
                "note": note or f"Status updated to {status}",
            }},
        },
    )
    phrase = ORDER_STATUS_MESSAGES.get(status, f"status changed to: {status}")
    add_notification(
        order["user_id"], type="order_update", title="Order Update",
        message=f"Your order #{order_id} {phrase}",
    )
    logger.info(f"Order {order_id}: {order['status']} -> {status}")
    return True


# --------------- Rentals --------------------------------------------------

def add_rental(user_id: str, rental: Dict) -> Dict:
    """Book a rental. The fleet car's daily rate, when known, prices the quote."""
    rate = rental.get("daily_rate")
    car_name = rental.get("car_name")
    car_id = rental.get("rental_car_id")
    if car_id:
        car = get_rental_car(car_id)
        if car:
            rate = car.get("daily_rate", rate)
            car_name = car_name or car.get("name")
    quote = quote_rental(rental["start_date"], rental["end_date"], rate)

    doc = {
        "user_id": user_id,
        "rental_car_id": car_id,
        "car_name": car_name or "Rental Service",
        "start_date": quote["start_date"],
        "end_date": quote["end_date"],
        "days": quote["days"],
        "daily_rate": quote["daily_rate"],
        "total_cost": quote["total"],
        "booked_at": utcnow(),
        "status": "confirmed",
    }
    rental_id = create_document(RENTALS, doc, doc_id=new_id("RNT"))
    add_notification(
        user_id, type="rental", title="Rental Confirmed!",
        message=f"Your rental #{rental_id} has been confirmed.",
    )
    return get_document(RENTALS, rental_id)


def get_user_rentals(user_id: str) -> List[Dict]:
    return get_documents(RENTALS, {"user_id": user_id})


def get_all_rentals() -> List[Dict]:
    users = _owner_lookup()
    rentals = []
    for rental in get_documents(RENTALS):
        user = users.get(rental["user_id"])
        rental["user_name"] = user["name"] if user else "Deleted User"
        rental["user_email"] = user["email"] if user else "N/A"
        rentals.append(rental)
    return rentals


def update_rental_status(rental_id: str, status: str) -> bool:
    rental = get_document(RENTALS, rental_id)
    if not rental:
        return False
    database.update_document(RENTALS, rental_id, {"status": status})
    add_notification(
        rental["user_id"], type="rental_update", title="Rental Update",
        message=f"Your rental #{rental_id} status: {status}",
    )
    return True


# --------------- Wishlist -------------------------------------------------

def get_user_wishlist(user_id: str) -> List[Dict]:
    return get_documents(WISHLIST, {"user_id": user_id}, sort=[("seq", 1)])


def add_to_wishlist(user_id: str, item: Dict) -> bool:
    """Returns False when the item was already on the list."""
    if database.collection(WISHLIST).find_one({"user_id": user_id, "item_id": item["item_id"]}):
        return False
    create_document(WISHLIST, {**item, "user_id": user_id, "added_at": utcnow()},
                    doc_id=f"{user_id}:{item['item_id']}")
    return True


def remove_from_wishlist(user_id: str, item_id: str) -> bool:
    n = database.delete_documents(WISHLIST, {"user_id": user_id, "item_id": item_id})
    return n > 0


# --------------- Booking history ------------------------------------------

def get_booking_history(user_id: str) -> List[Dict]:
    """Orders and rentals of one customer as a single timeline, newest first."""
    bookings = []
    for order in get_user_orders(user_id):
        names = ", ".join(i.get("name", "") for i in order.get("items", []))
        bookings.append({
            "kind": "order",
            "id": order["id"],
            "name": names or "Order",
            "date": order["date"],
            "total": order.get("total", 0),
            "status": order["status"],
        })
    for rental in get_user_rentals(user_id):
        bookings.append({
            "kind": "rental",
            "id": rental["id"],
            "name": rental.get("car_name"),
            "date": rental["booked_at"],
            "total": rental.get("total_cost", 0),
            "status": rental["status"],
        })
    bookings.sort(key=lambda b: b["date"], reverse=True)
    return bookings
