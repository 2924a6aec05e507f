"""
Database Schemas for EM Luxury Cars

Each Pydantic model describes the records of one MongoDB collection.
Collection names are listed in database.py.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    google_id: str = Field(..., description="Subject of the Google ID token")
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address")
    picture: Optional[str] = Field(None, description="Avatar URL")
    phone: str = ""
    address: str = ""
    registered_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    has_logged_in_before: bool = True
    is_banned: bool = False
    banned_until: Optional[datetime] = Field(None, description="None while banned means permanent")
    banned_reason: Optional[str] = None
    banned_at: Optional[datetime] = None


class Session(BaseModel):
    token: str
    is_logged_in: bool = True
    user_type: str = Field("user", description="user or admin")
    google_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None
    login_time: datetime
    is_new_user: bool = False


class OrderItem(BaseModel):
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    type: str = Field(..., description="Sale, Part or Rental")


class StatusChange(BaseModel):
    status: str
    date: datetime
    note: str


class Order(BaseModel):
    user_id: str
    items: List[OrderItem]
    total: float
    date: datetime
    status: str = Field("pending", description="pending|confirmed|processing|shipped|out-for-delivery|delivered|completed|cancelled")
    status_history: List[StatusChange] = Field(default_factory=list)


class Rental(BaseModel):
    user_id: str
    rental_car_id: Optional[str] = None
    car_name: str
    start_date: str
    end_date: str
    days: int
    daily_rate: float
    total_cost: float
    booked_at: datetime
    status: str = Field("confirmed", description="confirmed|active|completed|cancelled")


class CartItem(BaseModel):
    item_id: str
    name: str
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    type: str
    quantity: int = Field(1, ge=1)
    rent_days: int = 0


class WishlistItem(BaseModel):
    user_id: str
    item_id: str
    name: str
    price: Optional[float] = None
    image: Optional[str] = None
    type: Optional[str] = None
    added_at: datetime


class TicketResponse(BaseModel):
    message: str
    date: datetime


class SupportTicket(BaseModel):
    user_id: str
    user_name: str
    user_email: str
    subject: str
    message: str
    status: str = Field("open", description="open|in-progress|resolved")
    responses: List[TicketResponse] = Field(default_factory=list)


class Notification(BaseModel):
    user_id: str
    type: str
    title: str
    message: str
    read: bool = False
    date: datetime


class ContactMessage(BaseModel):
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    date: datetime
    read: bool = False


class InboxReply(BaseModel):
    message: str
    from_name: str
    date: datetime


class InboxMessage(BaseModel):
    from_id: str
    to_id: str
    from_name: str
    to_name: str
    subject: str
    message: str
    date: datetime
    read: bool = False
    replies: List[InboxReply] = Field(default_factory=list)
    likes: List[str] = Field(default_factory=list)


class Car(BaseModel):
    name: str = Field(..., description="Model name")
    price: float = Field(..., ge=0, description="Price in dollars")
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    speed: Optional[str] = None
    acceleration: Optional[str] = None
    engine: Optional[str] = None
    status: str = Field("available", description="available|reserved|sold")


class RentalCar(BaseModel):
    name: str
    daily_rate: float = Field(..., ge=0, description="Price per day in dollars")
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    seats: int = 2
    transmission: Optional[str] = None
    status: str = Field("available", description="available|rented|maintenance")


class Part(BaseModel):
    name: str
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    compatibility: Optional[str] = None
    quantity: int = 1
    status: str = Field("in-stock", description="in-stock|low-stock|out-of-stock")
    stock_left: Optional[int] = None


class BlogPost(BaseModel):
    title: str
    excerpt: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    content: str
    author: str = "Admin"
    date: datetime


class Testimonial(BaseModel):
    name: str
    rating: int = Field(5, ge=1, le=5)
    message: str
    car: Optional[str] = None
    date: datetime
    approved: bool = False
