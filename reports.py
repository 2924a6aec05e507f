"""
Figures for the admin and customer dashboards.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

import database
from accounts import get_all_users
from commerce import get_all_orders, get_all_rentals, get_user_orders, get_user_rentals, get_user_wishlist
from config import ADMIN_ID
from database import CONTACT_MESSAGES, INBOX_MESSAGES, ORDERS, TICKETS, utcnow
from notifications import get_unread_notification_count
from support import OPEN_STATUSES, get_unread_inbox_count, get_user_tickets

CAR_TYPES = ("Sale", "car")
PART_TYPES = ("Part", "part")
RENTAL_TYPES = ("Rental", "rental")


def _rental_amount(rental: Dict) -> float:
    return rental.get("total_cost") or rental.get("total") or 0


def get_admin_stats() -> Dict:
    users = get_all_users()
    orders = get_all_orders()
    rentals = get_all_rentals()
    tickets = database.collection(TICKETS).find({}, {"status": 1})
    messages = database.collection(CONTACT_MESSAGES).find({}, {"read": 1})

    order_revenue = sum(o.get("total") or 0 for o in orders if o["status"] != "cancelled")
    rental_revenue = sum(_rental_amount(r) for r in rentals)

    return {
        "totalUsers": len([u for u in users if not u.get("is_banned")]),
        "bannedUsers": len([u for u in users if u.get("is_banned")]),
        "totalOrders": len(orders),
        "pendingOrders": len([o for o in orders if o["status"] in ("pending", "processing")]),
        "totalRentals": len(rentals),
        "activeRentals": len([r for r in rentals if r["status"] in ("confirmed", "active")]),
        "openTickets": len([t for t in tickets if t.get("status") in OPEN_STATUSES]),
        "unreadMessages": len([m for m in messages if not m.get("read")]),
        "unreadInbox": database.collection(INBOX_MESSAGES).count_documents({"to_id": ADMIN_ID, "read": False}),
        "revenue": order_revenue + rental_revenue,
        "orderRevenue": order_revenue,
        "rentalRevenue": rental_revenue,
    }


def _month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def _last_months(now: datetime, count: int) -> List[Tuple[int, int]]:
    months = []
    for i in range(count - 1, -1, -1):
        index = now.year * 12 + (now.month - 1) - i
        months.append((index // 12, index % 12 + 1))
    return months


def get_chart_data(now: Optional[datetime] = None) -> Dict:
    """Six months of revenue, orders and sign-ups plus a sales category split."""
    now = now or utcnow()
    orders = get_all_orders()
    rentals = get_all_rentals()
    users = get_all_users()

    months, revenue_data, orders_data, users_data = [], [], [], []
    for year, month in _last_months(now, 6):
        start, end = _month_bounds(year, month)
        months.append(start.strftime("%b %y"))

        in_month = [o for o in orders if start <= o["date"] < end]
        order_revenue = sum(o.get("total") or 0 for o in in_month if o["status"] != "cancelled")
        rental_revenue = sum(_rental_amount(r) for r in rentals if start <= r["booked_at"] < end)

        revenue_data.append(order_revenue + rental_revenue)
        orders_data.append(len(in_month))
        users_data.append(len([
            u for u in users if u.get("registered_at") and start <= u["registered_at"] < end
        ]))

    car_sales = part_sales = rental_sales = 0
    for order in orders:
        if order["status"] == "cancelled":
            continue
        for item in order.get("items") or []:
            amount = item["price"] * (item.get("quantity") or 1)
            if item.get("type") in CAR_TYPES:
                car_sales += amount
            elif item.get("type") in PART_TYPES:
                part_sales += amount
            elif item.get("type") in RENTAL_TYPES:
                rental_sales += amount
    rental_sales += sum(_rental_amount(r) for r in rentals)

    total_sales = car_sales + part_sales + rental_sales

    def share(amount):
        return round(amount / total_sales * 100) if total_sales > 0 else 0

    return {
        "months": months,
        "revenueData": revenue_data,
        "ordersData": orders_data,
        "usersData": users_data,
        "categoryData": {
            "cars": share(car_sales),
            "parts": share(part_sales),
            "rentals": share(rental_sales),
        },
    }


def monthly_report(year: Optional[int] = None, month: Optional[int] = None) -> Dict:
    now = utcnow()
    y = year or now.year
    m = month or now.month
    start, end = _month_bounds(y, m)

    pipeline = [
        {"$match": {"date": {"$gte": start, "$lt": end}}},
        {"$group": {"_id": "$status", "count": {"$sum": 1}, "revenue": {"$sum": "$total"}}},
    ]
    agg = list(database.collection(ORDERS).aggregate(pipeline))
    summary = {row["_id"]: {"orders": row["count"], "revenue": round(row["revenue"], 2)} for row in agg}
    total_orders = sum(row["count"] for row in agg) if agg else 0
    total_revenue = round(sum(row["revenue"] for row in agg), 2) if agg else 0.0

    return {"year": y, "month": m, "summary": summary, "total_orders": total_orders, "total_revenue": total_revenue}


def get_user_stats(user_id: str) -> Dict:
    return {
        "orders": len(get_user_orders(user_id)),
        "wishlist": len(get_user_wishlist(user_id)),
        "rentals": len(get_user_rentals(user_id)),
        "openTickets": len([t for t in get_user_tickets(user_id) if t["status"] in OPEN_STATUSES]),
        "unreadNotifications": get_unread_notification_count(user_id),
        "unreadInbox": get_unread_inbox_count(user_id),
    }
