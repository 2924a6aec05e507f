import os
from datetime import MAXYEAR, MINYEAR, date
from typing import List, Optional, Union

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, EmailStr, Field

import accounts
import commerce
import content
import database
import inventory
import reports
import support
from config import ADMIN_ID, get_settings
from errors import BannedError, DealershipError
from logging_setup import configure_logging
from notifications import get_notifications, mark_all_notifications_read, mark_notification_read
from schemas import Car, CartItem, Part, RentalCar, Session

configure_logging(get_settings().log_level)

app = FastAPI(title="EM Luxury Cars API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DealershipError)
async def dealership_error_handler(request: Request, exc: DealershipError):
    body = {"detail": exc.message}
    if isinstance(exc, BannedError):
        body["ban"] = exc.ban_status
    return JSONResponse(status_code=exc.status_code, content=body)


# Dependencies

def require_db():
    if database.db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return database.db


def session_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def current_session(token: Optional[str] = Depends(session_token), _db=Depends(require_db)):
    return accounts.get_session(token)


def any_session(session=Depends(current_session)):
    return accounts.require_auth(session, "any")


def user_session(session=Depends(current_session)):
    return accounts.require_auth(session, "user")


def admin_session(session=Depends(current_session)):
    return accounts.require_auth(session, "admin")


def cart_owner(session) -> str:
    return session.get("google_id") or session["token"]


def found(result, detail: str = "Not found"):
    if not result:
        raise HTTPException(status_code=404, detail=detail)
    return result


# Auth models

class GoogleLoginRequest(BaseModel):
    credential: str


class AdminLoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    picture: Optional[str] = None


# Shop models

class QuoteRequest(BaseModel):
    start_date: date
    end_date: date
    daily_rate: Optional[float] = Field(None, ge=0)
    rental_car_id: Optional[str] = None


class RentalRequest(BaseModel):
    start_date: date
    end_date: date
    rental_car_id: Optional[str] = None
    car_name: Optional[str] = None
    daily_rate: Optional[float] = Field(None, ge=0)


class WishlistItemIn(BaseModel):
    item_id: str
    name: str
    price: Optional[float] = None
    image: Optional[str] = None
    type: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str
    note: str = ""


class CarUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    speed: Optional[str] = None
    acceleration: Optional[str] = None
    engine: Optional[str] = None
    status: Optional[str] = None


class RentalCarUpdate(BaseModel):
    name: Optional[str] = None
    daily_rate: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    seats: Optional[int] = None
    transmission: Optional[str] = None
    status: Optional[str] = None


class PartUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    compatibility: Optional[str] = None
    quantity: Optional[int] = None
    status: Optional[str] = None
    stock_left: Optional[int] = None


# Support and content models

class TicketIn(BaseModel):
    subject: str
    message: str


class TicketUpdate(BaseModel):
    subject: Optional[str] = None
    message: Optional[str] = None


class MessageIn(BaseModel):
    subject: str
    message: str


class AdminMessageIn(MessageIn):
    to_id: str


class ReplyIn(BaseModel):
    message: str


class BanRequest(BaseModel):
    duration: Union[int, str] = Field("24", description='hours, or "permanent"')
    reason: Optional[str] = None


class ContactIn(BaseModel):
    name: str
    email: EmailStr
    subject: Optional[str] = None
    message: str


class TestimonialIn(BaseModel):
    name: str
    rating: int = Field(5, ge=1, le=5)
    message: str
    car: Optional[str] = None


class BlogPostIn(BaseModel):
    title: str
    excerpt: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    content: str
    author: Optional[str] = None


class BlogPostUpdate(BaseModel):
    title: Optional[str] = None
    excerpt: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    content: Optional[str] = None


def changes(payload: BaseModel) -> dict:
    return {k: v for k, v in payload.model_dump().items() if v is not None}


@app.get("/")
async def root():
    return {"message": "EM Luxury Cars API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Connected"
            response["collections"] = database.db.list_collection_names()[:10]
    except Exception as e:
        response["database"] = f"⚠️ {str(e)[:80]}"
    return response


# Auth endpoints

@app.post("/auth/google", response_model=Session)
def google_login(req: GoogleLoginRequest, _db=Depends(require_db)):
    return accounts.sign_in_with_google(req.credential)


@app.post("/auth/demo", response_model=Session)
def demo_login(_db=Depends(require_db)):
    return accounts.login_as_demo()


@app.post("/auth/admin", response_model=Session)
def admin_login(req: AdminLoginRequest, _db=Depends(require_db)):
    session = accounts.admin_login(req.email, req.password)
    if not session:
        raise HTTPException(status_code=401, detail="Invalid admin credentials")
    return session


@app.post("/auth/logout")
def logout(token: Optional[str] = Depends(session_token), _db=Depends(require_db)):
    return {"logged_out": accounts.end_session(token)}


@app.get("/auth/me", response_model=Session)
def me(session=Depends(any_session)):
    return session


# Public catalogue

@app.get("/cars")
def list_cars(_db=Depends(require_db)):
    return inventory.get_cars()


@app.get("/cars/{car_id}")
def get_car(car_id: str, _db=Depends(require_db)):
    return found(inventory.get_car(car_id))


@app.get("/rental-cars")
def list_rental_cars(_db=Depends(require_db)):
    return inventory.get_rental_cars()


@app.get("/rental-cars/{car_id}")
def get_rental_car(car_id: str, _db=Depends(require_db)):
    return found(inventory.get_rental_car(car_id))


@app.get("/parts")
def list_parts(_db=Depends(require_db)):
    return inventory.get_parts()


@app.get("/parts/{part_id}")
def get_part(part_id: str, _db=Depends(require_db)):
    return found(inventory.get_part(part_id))


@app.get("/blog")
def list_blog_posts(_db=Depends(require_db)):
    return content.get_blog_posts()


@app.get("/testimonials")
def list_testimonials(_db=Depends(require_db)):
    return content.get_testimonials()


@app.post("/testimonials", status_code=201)
def submit_testimonial(req: TestimonialIn, _db=Depends(require_db)):
    return content.add_testimonial(req.model_dump())


@app.post("/contact", status_code=201)
def contact(req: ContactIn, _db=Depends(require_db)):
    return support.save_contact_message(req.model_dump())


@app.post("/rentals/quote")
def rental_quote(req: QuoteRequest, _db=Depends(require_db)):
    rate = req.daily_rate
    if req.rental_car_id:
        car = found(inventory.get_rental_car(req.rental_car_id), "Rental car not found")
        rate = car.get("daily_rate", rate)
    return commerce.quote_rental(req.start_date, req.end_date, rate)


# Cart

def _cart_view(items: List[dict]) -> dict:
    return {"items": items, "count": commerce.cart_count(items), "total": commerce.cart_total(items)}


@app.get("/cart")
def view_cart(session=Depends(any_session)):
    return _cart_view(commerce.get_cart(cart_owner(session)))


@app.post("/cart/items", status_code=201)
def add_cart_item(item: CartItem, session=Depends(any_session)):
    items = commerce.add_to_cart(cart_owner(session), item.model_dump())
    return _cart_view(items)


@app.delete("/cart/items/{index}")
def remove_cart_item(index: int, session=Depends(any_session)):
    items = commerce.remove_cart_item(cart_owner(session), index)
    if items is None:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return _cart_view(items)


@app.post("/cart/checkout")
def checkout(session=Depends(any_session)):
    order = commerce.checkout(cart_owner(session), session)
    return {"success": True, "order": order}


# Customer dashboard

@app.get("/me/profile")
def get_profile(session=Depends(user_session)):
    return found(accounts.get_user(session["google_id"]), "User not found")


@app.put("/me/profile")
def update_profile(payload: ProfileUpdate, session=Depends(user_session)):
    updates = changes(payload)
    found(accounts.update_user_profile(session["google_id"], updates), "User not found")
    return accounts.get_user(session["google_id"])


@app.get("/me/stats")
def my_stats(session=Depends(user_session)):
    return reports.get_user_stats(session["google_id"])


@app.get("/me/orders")
def my_orders(session=Depends(user_session)):
    return commerce.get_user_orders(session["google_id"])


@app.get("/me/rentals")
def my_rentals(session=Depends(user_session)):
    return commerce.get_user_rentals(session["google_id"])


@app.post("/me/rentals", status_code=201)
def book_rental(req: RentalRequest, session=Depends(user_session)):
    return commerce.add_rental(session["google_id"], req.model_dump())


@app.get("/me/bookings")
def my_bookings(session=Depends(user_session)):
    return commerce.get_booking_history(session["google_id"])


@app.get("/me/wishlist")
def my_wishlist(session=Depends(user_session)):
    return commerce.get_user_wishlist(session["google_id"])


@app.post("/me/wishlist", status_code=201)
def add_wishlist_item(item: WishlistItemIn, session=Depends(user_session)):
    added = commerce.add_to_wishlist(session["google_id"], item.model_dump())
    return {"added": added}


@app.delete("/me/wishlist/{item_id}")
def remove_wishlist_item(item_id: str, session=Depends(user_session)):
    found(commerce.remove_from_wishlist(session["google_id"], item_id))
    return {"deleted": True}


@app.get("/me/notifications")
def my_notifications(session=Depends(user_session)):
    return get_notifications(session["google_id"])


@app.post("/me/notifications/read-all")
def read_all_notifications(session=Depends(user_session)):
    return {"updated": mark_all_notifications_read(session["google_id"])}


@app.post("/me/notifications/{notification_id}/read")
def read_notification(notification_id: str, session=Depends(user_session)):
    found(mark_notification_read(session["google_id"], notification_id))
    return {"updated": True}


@app.get("/me/tickets")
def my_tickets(session=Depends(user_session)):
    return support.get_user_tickets(session["google_id"])


@app.post("/me/tickets", status_code=201)
def open_ticket(req: TicketIn, session=Depends(user_session)):
    return support.create_ticket(session["google_id"], req.subject, req.message)


def _own_ticket(ticket_id: str, session) -> dict:
    ticket = support.get_ticket(ticket_id)
    if not ticket or ticket["user_id"] != session["google_id"]:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@app.get("/me/tickets/{ticket_id}")
def my_ticket(ticket_id: str, session=Depends(user_session)):
    return _own_ticket(ticket_id, session)


@app.put("/me/tickets/{ticket_id}")
def edit_ticket(ticket_id: str, req: TicketUpdate, session=Depends(user_session)):
    _own_ticket(ticket_id, session)
    if not support.update_ticket(ticket_id, session["google_id"], req.subject, req.message):
        raise HTTPException(status_code=400, detail="Only open tickets can be edited")
    return support.get_ticket(ticket_id)


@app.delete("/me/tickets/{ticket_id}")
def remove_ticket(ticket_id: str, session=Depends(user_session)):
    found(support.delete_ticket(ticket_id, session["google_id"]), "Ticket not found")
    return {"deleted": True}


@app.get("/me/inbox")
def my_inbox(session=Depends(user_session)):
    messages = support.get_user_inbox_messages(session["google_id"])
    return {"messages": messages, "unread": support.get_unread_inbox_count(session["google_id"])}


@app.post("/me/inbox", status_code=201)
def message_admin(req: MessageIn, session=Depends(user_session)):
    return support.send_inbox_message(session["google_id"], ADMIN_ID, req.subject, req.message)


def _own_message(message_id: str, session) -> dict:
    msg = support.get_inbox_message(message_id)
    if not msg or session["google_id"] not in (msg["from_id"], msg["to_id"]):
        raise HTTPException(status_code=404, detail="Message not found")
    return msg


@app.post("/me/inbox/{message_id}/read")
def read_my_message(message_id: str, session=Depends(user_session)):
    msg = _own_message(message_id, session)
    if msg["to_id"] != session["google_id"]:
        return {"updated": False}
    return {"updated": support.mark_inbox_message_read(message_id)}


@app.post("/me/inbox/{message_id}/reply")
def reply_my_message(message_id: str, req: ReplyIn, session=Depends(user_session)):
    _own_message(message_id, session)
    support.reply_to_inbox_message(message_id, req.message, session["google_id"])
    return support.get_inbox_message(message_id)


@app.post("/me/inbox/{message_id}/like")
def like_message(message_id: str, session=Depends(user_session)):
    _own_message(message_id, session)
    return {"liked": support.toggle_message_like(message_id, session["google_id"])}


# Admin dashboard

@app.get("/admin/stats")
def admin_stats(_admin=Depends(admin_session)):
    return reports.get_admin_stats()


@app.get("/admin/charts")
def admin_charts(_admin=Depends(admin_session)):
    return reports.get_chart_data()


@app.get("/admin/reports/monthly")
def monthly_report(year: Optional[int] = None, month: Optional[int] = None, _admin=Depends(admin_session)):
    if month is not None and not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Invalid month")
    if year is not None and not MINYEAR <= year < MAXYEAR:
        raise HTTPException(status_code=400, detail="Invalid year")
    return reports.monthly_report(year, month)


@app.get("/admin/users")
def admin_users(q: str = "", _admin=Depends(admin_session)):
    users = accounts.get_all_users(q)
    for user in users:
        if user.get("is_banned"):
            user["ban"] = accounts.is_user_banned(user["google_id"])
    return users


@app.post("/admin/users/{user_id}/ban")
def ban_user(user_id: str, req: BanRequest, _admin=Depends(admin_session)):
    if str(req.duration) != "permanent" and not str(req.duration).isdigit():
        raise HTTPException(status_code=400, detail='duration must be hours or "permanent"')
    found(accounts.ban_user(user_id, req.duration, req.reason), "User not found")
    return accounts.is_user_banned(user_id)


@app.post("/admin/users/{user_id}/unban")
def unban_user(user_id: str, _admin=Depends(admin_session)):
    found(accounts.unban_user(user_id), "User not found")
    return {"banned": False}


@app.delete("/admin/users/{user_id}")
def delete_user(user_id: str, _admin=Depends(admin_session)):
    found(accounts.delete_user(user_id), "User not found")
    return {"deleted": True}


@app.get("/admin/orders")
def admin_orders(_admin=Depends(admin_session)):
    return commerce.get_all_orders()


@app.put("/admin/orders/{order_id}/status")
def set_order_status(order_id: str, req: StatusUpdate, _admin=Depends(admin_session)):
    found(commerce.update_order_status(order_id, req.status, req.note), "Order not found")
    return commerce.get_order(order_id)


@app.get("/admin/rentals")
def admin_rentals(_admin=Depends(admin_session)):
    return commerce.get_all_rentals()


@app.put("/admin/rentals/{rental_id}/status")
def set_rental_status(rental_id: str, req: StatusUpdate, _admin=Depends(admin_session)):
    found(commerce.update_rental_status(rental_id, req.status), "Rental not found")
    return {"updated": True}


# Inventory CRUD (admin)

@app.post("/admin/cars", status_code=201)
def create_car(car: Car, _admin=Depends(admin_session)):
    return inventory.add_car(car.model_dump())


@app.put("/admin/cars/{car_id}")
def update_car(car_id: str, payload: CarUpdate, _admin=Depends(admin_session)):
    found(inventory.update_car(car_id, changes(payload)))
    return inventory.get_car(car_id)


@app.delete("/admin/cars/{car_id}")
def delete_car(car_id: str, _admin=Depends(admin_session)):
    found(inventory.delete_car(car_id))
    return {"deleted": True}


@app.post("/admin/rental-cars", status_code=201)
def create_rental_car(car: RentalCar, _admin=Depends(admin_session)):
    return inventory.add_rental_car(car.model_dump())


@app.put("/admin/rental-cars/{car_id}")
def update_rental_car(car_id: str, payload: RentalCarUpdate, _admin=Depends(admin_session)):
    found(inventory.update_rental_car(car_id, changes(payload)))
    return inventory.get_rental_car(car_id)


@app.delete("/admin/rental-cars/{car_id}")
def delete_rental_car(car_id: str, _admin=Depends(admin_session)):
    found(inventory.delete_rental_car(car_id))
    return {"deleted": True}


@app.post("/admin/parts", status_code=201)
def create_part(part: Part, _admin=Depends(admin_session)):
    return inventory.add_part(part.model_dump())


@app.put("/admin/parts/{part_id}")
def update_part(part_id: str, payload: PartUpdate, _admin=Depends(admin_session)):
    found(inventory.update_part(part_id, changes(payload)))
    return inventory.get_part(part_id)


@app.delete("/admin/parts/{part_id}")
def delete_part(part_id: str, _admin=Depends(admin_session)):
    found(inventory.delete_part(part_id))
    return {"deleted": True}


# Support (admin)

@app.get("/admin/tickets")
def admin_tickets(status: str = "all", _admin=Depends(admin_session)):
    return support.get_all_tickets(status)


@app.post("/admin/tickets/{ticket_id}/responses")
def respond_ticket(ticket_id: str, req: ReplyIn, _admin=Depends(admin_session)):
    found(support.add_ticket_response(ticket_id, req.message), "Ticket not found")
    return support.get_ticket(ticket_id)


@app.post("/admin/tickets/{ticket_id}/close")
def close_ticket(ticket_id: str, _admin=Depends(admin_session)):
    found(support.close_ticket(ticket_id), "Ticket not found")
    return support.get_ticket(ticket_id)


@app.get("/admin/messages")
def admin_messages(_admin=Depends(admin_session)):
    return support.get_contact_messages()


@app.post("/admin/messages/read-all")
def read_all_messages(_admin=Depends(admin_session)):
    return {"updated": support.mark_all_messages_read()}


@app.post("/admin/messages/{message_id}/read")
def read_message(message_id: str, _admin=Depends(admin_session)):
    found(support.mark_message_read(message_id), "Message not found")
    return {"updated": True}


@app.delete("/admin/messages/{message_id}")
def delete_message(message_id: str, _admin=Depends(admin_session)):
    found(support.delete_message(message_id), "Message not found")
    return {"deleted": True}


@app.get("/admin/inbox")
def admin_inbox(_admin=Depends(admin_session)):
    return support.get_admin_inbox()


@app.post("/admin/inbox", status_code=201)
def message_user(req: AdminMessageIn, _admin=Depends(admin_session)):
    found(accounts.get_user(req.to_id), "User not found")
    return support.send_inbox_message(ADMIN_ID, req.to_id, req.subject, req.message)


@app.post("/admin/inbox/{message_id}/read")
def read_inbox_message(message_id: str, _admin=Depends(admin_session)):
    found(support.mark_inbox_message_read(message_id), "Message not found")
    return {"updated": True}


@app.post("/admin/inbox/{message_id}/reply")
def reply_inbox_message(message_id: str, req: ReplyIn, _admin=Depends(admin_session)):
    found(support.reply_to_inbox_message(message_id, req.message, ADMIN_ID), "Message not found")
    return support.get_inbox_message(message_id)


# Content (admin)

@app.post("/admin/blog", status_code=201)
def create_blog_post(req: BlogPostIn, _admin=Depends(admin_session)):
    return content.add_blog_post(changes(req))


@app.put("/admin/blog/{post_id}")
def update_blog_post(post_id: str, req: BlogPostUpdate, _admin=Depends(admin_session)):
    found(content.update_blog_post(post_id, changes(req)), "Post not found")
    return {"updated": True}


@app.delete("/admin/blog/{post_id}")
def delete_blog_post(post_id: str, _admin=Depends(admin_session)):
    found(content.delete_blog_post(post_id), "Post not found")
    return {"deleted": True}


@app.get("/admin/testimonials")
def admin_testimonials(_admin=Depends(admin_session)):
    return content.get_testimonials(approved_only=False)


@app.post("/admin/testimonials/{testimonial_id}/approve")
def approve_testimonial(testimonial_id: str, _admin=Depends(admin_session)):
    found(content.approve_testimonial(testimonial_id), "Testimonial not found")
    return {"approved": True}


@app.delete("/admin/testimonials/{testimonial_id}")
def delete_testimonial(testimonial_id: str, _admin=Depends(admin_session)):
    found(content.delete_testimonial(testimonial_id), "Testimonial not found")
    return {"deleted": True}


@app.post("/admin/reset")
def reset_store(_admin=Depends(admin_session)):
    database.clear_all_data()
    return {"reset": True}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", get_settings().port))
    logger.info(f"Starting EM Luxury Cars API on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
