from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cinebook.db.session import get_db
from cinebook.api.deps import get_reservation_engine
from cinebook.core.errors import ShowNotFound
from cinebook.models.show import Show
from cinebook.schemas.show import Show as ShowSchema
from cinebook.schemas.seat import SeatView
from cinebook.services.reservation import ReservationEngine

router = APIRouter(prefix="/shows", tags=["Shows"])
availability_router = APIRouter(prefix="/availability", tags=["Shows"])


@router.get("/{show_id}", response_model=ShowSchema)
def get_show(show_id: UUID, db: Session = Depends(get_db)):
    show = db.query(Show).filter(Show.id == show_id).first()
    if not show:
        raise ShowNotFound(f"Show {show_id} not found")
    return show


@router.get("/{show_id}/availability", response_model=List[SeatView])
def get_show_availability(
    show_id: UUID,
    engine: ReservationEngine = Depends(get_reservation_engine),
):
    """
    Every seat of the show with its category, price and reservation flag.
    Does not require authentication. The result is a point-in-time read;
    a booking attempt may still find a seat taken.
    """
    return engine.list_availability(show_id)


@availability_router.get("/", response_model=List[SeatView])
def get_availability(
    show_id: UUID = Query(...),
    engine: ReservationEngine = Depends(get_reservation_engine),
):
    """Same projection as `/shows/{show_id}/availability`, addressed by query string."""
    return engine.list_availability(show_id)
