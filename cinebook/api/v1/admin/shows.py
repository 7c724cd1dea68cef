from datetime import timezone
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cinebook.db.session import get_db
from cinebook.api.deps import get_current_admin_user, get_reservation_engine
from cinebook.core.errors import AlreadyProvisioned, MovieNotFound, ShowHasBookings, ShowNotFound
from cinebook.models.user import User
from cinebook.models.movie import Movie
from cinebook.models.show import Show
from cinebook.models.booking import Booking
from cinebook.schemas.show import ShowCreate, ShowCreateResponse
from cinebook.schemas.seat import ProvisionResponse
from cinebook.schemas.common import ErrorResponse
from cinebook.services.reservation import ReservationEngine

router = APIRouter(prefix="/admin/shows", tags=["Admin - Shows"])


@router.post("/", response_model=ShowCreateResponse, status_code=status.HTTP_201_CREATED)
def create_show(
    data: ShowCreate,
    engine: ReservationEngine = Depends(get_reservation_engine),
    current_user: User = Depends(get_current_admin_user),
):
    """Create a show and provision its 8 x 10 seat grid."""
    db = engine.db
    if not db.query(Movie.id).filter(Movie.id == data.movie_id).first():
        raise MovieNotFound("Movie not found")

    show_datetime = data.show_datetime
    if show_datetime.tzinfo is not None:
        show_datetime = show_datetime.astimezone(timezone.utc)

    show = Show(
        movie_id=data.movie_id,
        theatre_name=data.theatre_name,
        show_datetime=show_datetime,
    )
    db.add(show)
    db.commit()
    db.refresh(show)

    created = engine.provision_seats(show.id)
    return ShowCreateResponse(
        id=show.id,
        movie_id=show.movie_id,
        theatre_name=show.theatre_name,
        show_datetime=show.show_datetime,
        seats_created=created,
    )


@router.post(
    "/{show_id}/provision",
    response_model=ProvisionResponse,
    responses={409: {"model": ErrorResponse}},
)
def provision_show_seats(
    show_id: UUID,
    engine: ReservationEngine = Depends(get_reservation_engine),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Create the seat grid for a show that has none.
    A second call is a no-op and answers 409 `already_provisioned`.
    """
    created = engine.provision_seats(show_id)
    if not created:
        raise AlreadyProvisioned(f"Show {show_id} already has seats")
    return ProvisionResponse(show_id=show_id, created_count=created)


@router.delete("/{show_id}", status_code=status.HTTP_200_OK)
def delete_show(
    show_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    show = db.query(Show).filter(Show.id == show_id).first()
    if not show:
        raise ShowNotFound(f"Show {show_id} not found")

    # Bookings are immutable and point at this show's seats
    if db.query(Booking.id).filter(Booking.show_id == show_id).first():
        raise ShowHasBookings("Show has bookings and cannot be deleted")

    # Seats cascade-delete via the ORM relationship
    db.delete(show)
    db.commit()
    return {"id": str(show_id), "deleted": True}
