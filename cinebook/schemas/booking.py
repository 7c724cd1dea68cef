from typing import Annotated, Optional, List
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, UUID4
from decimal import Decimal
from datetime import datetime


# Booking — Create (POST /bookings)
# Unknown fields (total_price, price, ...) are dropped: the server prices every booking
class BookingCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    show_id: UUID
    # Size, duplicate and cap rules are enforced by the reservation engine
    seat_ids: List[str]
    idempotency_key: Annotated[Optional[str], Field(min_length=1, max_length=64)] = None


# Booking — response (POST /bookings, GET /bookings/{id})
class Booking(BaseModel):
    booking_id: UUID4
    show_id: UUID4
    total_price: Decimal
    seat_count: int
    seats: List[str]
    booking_time: Optional[datetime] = None


# Booking with movie/show details (GET /me/bookings)
class BookingDetail(Booking):
    movie_title: str
    poster_url: Optional[str] = None
    theatre_name: str
    show_datetime: datetime
