from decimal import Decimal
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from cinebook.models.booking import Booking, BookingSeat
from cinebook.models.seat import Seat
from cinebook.models.show import Show
from cinebook.utils.seat_layout import SeatSpec, parse_seat_label


class CatalogStore:
    """
    Data access for shows, seats and bookings, bound to one session.

    Nothing here commits: the caller owns the transaction. Seat reservation
    state is only ever written by ``conditionally_reserve_seats``.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_show(self, show_id: UUID) -> Optional[Show]:
        return self.db.query(Show).filter(Show.id == show_id).first()

    def get_seats(self, show_id: UUID) -> List[Seat]:
        return (
            self.db.query(Seat)
            .filter(Seat.show_id == show_id)
            .order_by(Seat.row_label, Seat.seat_number)
            .all()
        )

    def get_seats_by_ids(self, show_id: UUID, labels: Iterable[str]) -> List[Seat]:
        """Resolve seat labels ('A1') within a show. Unknown or malformed labels are skipped."""
        positions = [p for p in (parse_seat_label(label) for label in labels) if p]
        if not positions:
            return []
        return (
            self.db.query(Seat)
            .filter(
                Seat.show_id == show_id,
                or_(*[
                    and_(Seat.row_label == row, Seat.seat_number == col)
                    for row, col in positions
                ]),
            )
            .all()
        )

    def seats_exist_for_show(self, show_id: UUID) -> bool:
        return self.db.query(Seat.id).filter(Seat.show_id == show_id).first() is not None

    def find_booking_by_key(self, user_id: UUID, idempotency_key: str) -> Optional[Booking]:
        return (
            self.db.query(Booking)
            .filter(
                Booking.user_id == user_id,
                Booking.idempotency_key == idempotency_key,
            )
            .first()
        )

    # ------------------------------------------------------------------
    # Writes (flushed, never committed)
    # ------------------------------------------------------------------

    def lock_seats(self, seat_ids: Sequence[UUID]) -> List[Seat]:
        """
        Claim row locks on the given seats, in primary-key order so that
        overlapping requests cannot deadlock. Backends without row locks
        (SQLite) get a plain read. Rows are re-read from the database even if
        the session already holds them.
        """
        return (
            self.db.query(Seat)
            .filter(Seat.id.in_(seat_ids))
            .order_by(Seat.id)
            .with_for_update()
            .populate_existing()
            .all()
        )

    def conditionally_reserve_seats(self, seat_ids: Sequence[UUID], booking_id: UUID) -> int:
        """Flip available seats to reserved; returns how many rows actually changed."""
        return (
            self.db.query(Seat)
            .filter(
                Seat.id.in_(seat_ids),
                Seat.is_reserved == False,  # noqa: E712
            )
            .update(
                {"is_reserved": True, "booking_id": booking_id},
                synchronize_session=False,
            )
        )

    def create_booking(
        self,
        user_id: UUID,
        show_id: UUID,
        total_price: Decimal,
        seat_count: int,
        idempotency_key: Optional[str] = None,
    ) -> Booking:
        booking = Booking(
            user_id=user_id,
            show_id=show_id,
            total_price=total_price,
            seat_count=seat_count,
            idempotency_key=idempotency_key,
        )
        self.db.add(booking)
        self.db.flush()  # get booking.id
        return booking

    def attach_seats(self, booking: Booking, seats_in_order: Sequence[Seat]) -> None:
        for position, seat in enumerate(seats_in_order):
            self.db.add(BookingSeat(
                booking_id=booking.id,
                seat_id=seat.id,
                position=position,
            ))
        self.db.flush()

    def bulk_insert_seats(self, show_id: UUID, layout: Sequence[SeatSpec]) -> int:
        self.db.add_all([
            Seat(
                show_id=show_id,
                row_label=cell.row,
                seat_number=cell.col,
                tier=cell.tier,
                is_reserved=False,
            )
            for cell in layout
        ])
        self.db.flush()
        return len(layout)
