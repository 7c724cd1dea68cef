from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cinebook.db.session import get_db
from cinebook.api.deps import get_current_member
from cinebook.api.v1.public.auth import ensure_email_free
from cinebook.api.v1.public.bookings import load_booking_query, serialize_booking_detail
from cinebook.models.user import User
from cinebook.models.booking import Booking
from cinebook.schemas.user import User as UserSchema, UserUpdate
from cinebook.schemas.booking import BookingDetail

router = APIRouter(prefix="/me", tags=["Me"])


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/", response_model=UserSchema)
def get_me(current_user: User = Depends(get_current_member)):
    """Return the authenticated user's profile."""
    return current_user


@router.patch("/", response_model=UserSchema)
def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
):
    """Update the authenticated user's profile (full_name, phone, email, avatar_url)."""
    changes = data.model_dump(exclude_unset=True)
    new_email = changes.get("email")
    if new_email and new_email != current_user.email:
        ensure_email_free(db, new_email)
    for field, value in changes.items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@router.get("/bookings", response_model=List[BookingDetail])
def list_my_bookings(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
):
    """Return the authenticated user's most recent bookings, newest first."""
    bookings = (
        load_booking_query(db)
        .filter(Booking.user_id == current_user.id)
        .order_by(Booking.booking_time.desc())
        .limit(limit)
        .all()
    )
    return [serialize_booking_detail(b) for b in bookings]
