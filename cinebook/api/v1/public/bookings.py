from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from cinebook.db.session import get_db
from cinebook.api.deps import get_current_member, get_reservation_engine
from cinebook.core.errors import BookingNotFound
from cinebook.models.user import User
from cinebook.models.booking import Booking, BookingSeat
from cinebook.models.show import Show
from cinebook.schemas.booking import (
    BookingCreate,
    Booking as BookingSchema,
    BookingDetail,
)
from cinebook.schemas.common import ErrorResponse, SeatsUnavailableError, SeatsNotFoundError
from cinebook.services.reservation import ReservationEngine

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def serialize_booking(booking: Booking) -> BookingSchema:
    """Convert a Booking ORM object to its schema representation."""
    return BookingSchema(
        booking_id=booking.id,
        show_id=booking.show_id,
        total_price=booking.total_price,
        seat_count=booking.seat_count,
        seats=[link.seat.label for link in booking.seats],
        booking_time=booking.booking_time,
    )


def serialize_booking_detail(booking: Booking) -> BookingDetail:
    """Booking plus the movie and show it is for (profile screen)."""
    show = booking.show
    movie = show.movie if show else None
    return BookingDetail(
        **serialize_booking(booking).model_dump(),
        movie_title=movie.title if movie else "Unknown",
        poster_url=movie.poster_url if movie else None,
        theatre_name=show.theatre_name if show else "Unknown",
        show_datetime=show.show_datetime,
    )


def load_booking_query(db: Session):
    return db.query(Booking).options(
        joinedload(Booking.show).joinedload(Show.movie),
        joinedload(Booking.seats).joinedload(BookingSeat.seat),
    )


# ---------------------------------------------------------------------------
# POST /bookings — reserve seats
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=BookingSchema,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": SeatsNotFoundError},
        409: {"model": SeatsUnavailableError},
        503: {"model": ErrorResponse},
    },
)
def create_booking(
    data: BookingCreate,
    engine: ReservationEngine = Depends(get_reservation_engine),
    current_user: User = Depends(get_current_member),
):
    """
    Book a set of seats (labels such as `"A1"`) on a show.

    - 1 to 8 distinct seats per request.
    - All-or-nothing: either every seat is reserved or none is.
    - The total is computed from the seat tiers; any price sent by the client is ignored.
    - On `409 seat_unavailable` re-fetch availability and choose other seats.
    - Re-sending the same `idempotency_key` returns the original booking.
    """
    booking = engine.reserve(
        data.show_id,
        data.seat_ids,
        current_user,
        idempotency_key=data.idempotency_key,
    )
    return serialize_booking(booking)


# ---------------------------------------------------------------------------
# GET /bookings/{id} — single booking detail
# ---------------------------------------------------------------------------


@router.get("/{booking_id}", response_model=BookingDetail)
def get_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
):
    """Return a single booking. Only the owning user can access it."""
    booking = (
        load_booking_query(db)
        .filter(Booking.id == booking_id, Booking.user_id == current_user.id)
        .first()
    )
    if not booking:
        raise BookingNotFound("Booking not found")
    return serialize_booking_detail(booking)
