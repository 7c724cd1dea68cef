"""
Seat reservation engine.

``reserve`` is all-or-nothing: inside one transaction it inserts the booking,
claims the requested seat rows and flips them with a conditional update
(``is_reserved = false`` guard). If fewer rows change than were requested,
some other booking got there first and the whole transaction is rolled back.
There is no per-show lock, so requests for disjoint seats never wait on each
other beyond what the database itself imposes.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from cinebook.core.config import settings
from cinebook.core.errors import (
    CineBookError,
    InvalidRequest,
    ReservationTimeout,
    SeatNotFound,
    SeatUnavailable,
    ShowNotFound,
    StoreUnavailable,
)
from cinebook.models.booking import Booking
from cinebook.models.seat import Seat
from cinebook.models.user import User
from cinebook.schemas.seat import SeatView
from cinebook.services.catalog_store import CatalogStore
from cinebook.utils.seat_layout import build_layout, normalize_label, price_for

logger = logging.getLogger(__name__)


class ReservationEngine:
    def __init__(
        self,
        db: Session,
        max_seats_per_booking: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ):
        self.db = db
        self.store = CatalogStore(db)
        self.max_seats_per_booking = max_seats_per_booking or settings.MAX_SEATS_PER_BOOKING
        self.timeout_ms = timeout_ms or settings.RESERVATION_TIMEOUT_MS

    # ------------------------------------------------------------------
    # reserve
    # ------------------------------------------------------------------

    def reserve(
        self,
        show_id: UUID,
        seat_ids: Sequence[str],
        requester: User,
        idempotency_key: Optional[str] = None,
    ) -> Booking:
        """
        Reserve ``seat_ids`` (seat labels) on ``show_id`` for ``requester``.

        Raises ShowNotFound, SeatNotFound, SeatUnavailable (naming the
        conflicting seats), InvalidRequest, ReservationTimeout or
        StoreUnavailable. On any error no seat changes state.
        """
        labels = self._validate_request(seat_ids)
        if idempotency_key is not None and not idempotency_key.strip():
            raise InvalidRequest("Idempotency key must not be blank")

        try:
            self._apply_lock_timeout()

            if idempotency_key is not None:
                existing = self.store.find_booking_by_key(requester.id, idempotency_key)
                if existing is not None:
                    return self._replay(existing, show_id, labels)

            if self.store.get_show(show_id) is None:
                raise ShowNotFound(f"Show {show_id} not found")

            found = {seat.label: seat for seat in self.store.get_seats_by_ids(show_id, labels)}
            missing = [label for label in labels if label not in found]
            if missing:
                raise SeatNotFound(missing)

            locked = self.store.lock_seats([seat.id for seat in found.values()])
            if len(locked) != len(labels):
                # Seats vanished between lookup and lock: the show was deleted
                locked_labels = {seat.label for seat in locked}
                raise SeatNotFound([label for label in labels if label not in locked_labels])

            taken = sorted(seat.label for seat in locked if seat.is_reserved)
            if taken:
                raise SeatUnavailable(taken)

            total_price = sum(
                (price_for(seat.tier, seat.price_override) for seat in locked),
                Decimal("0.00"),
            )
            booking = self.store.create_booking(
                user_id=requester.id,
                show_id=show_id,
                total_price=total_price,
                seat_count=len(labels),
                idempotency_key=idempotency_key,
            )

            updated = self.store.conditionally_reserve_seats(
                [seat.id for seat in locked], booking.id
            )
            if updated != len(labels):
                self.db.rollback()
                conflicting = self._reserved_labels(show_id, labels)
                logger.warning(
                    "Conditional reserve on show %s changed %d of %d seats; conflicts: %s",
                    show_id, updated, len(labels), conflicting,
                )
                raise SeatUnavailable(conflicting or labels)

            by_id = {seat.id: seat for seat in locked}
            self.store.attach_seats(booking, [by_id[found[label].id] for label in labels])
            self.db.commit()

        except CineBookError as exc:
            self.db.rollback()
            if isinstance(exc, SeatUnavailable):
                logger.warning("Booking on show %s rejected: %s", show_id, exc.message)
            raise
        except IntegrityError as exc:
            self.db.rollback()
            return self._resolve_integrity_error(exc, show_id, labels, requester, idempotency_key)
        except OperationalError as exc:
            self.db.rollback()
            logger.warning("Reservation on show %s aborted: %s", show_id, exc.orig)
            raise ReservationTimeout() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Store failure while reserving seats on show %s", show_id)
            raise StoreUnavailable() from exc

        logger.info(
            "Booking %s: user %s reserved %s on show %s for %s",
            booking.id, requester.id, ",".join(labels), show_id, total_price,
        )
        return booking

    def _validate_request(self, seat_ids: Sequence[str]) -> List[str]:
        if not seat_ids:
            raise InvalidRequest("At least one seat must be requested")
        if len(seat_ids) > self.max_seats_per_booking:
            raise InvalidRequest(
                f"At most {self.max_seats_per_booking} seats can be booked at once",
                max_seats=self.max_seats_per_booking,
            )
        labels = [normalize_label(seat_id) for seat_id in seat_ids]
        duplicates = sorted({label for label in labels if labels.count(label) > 1})
        if duplicates:
            raise InvalidRequest("Seat list contains duplicates", duplicate_seats=duplicates)
        return labels

    def _apply_lock_timeout(self) -> None:
        # SQLite bounds lock waits with the connection busy timeout instead
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.execute(text(f"SET LOCAL lock_timeout = '{int(self.timeout_ms)}ms'"))

    def _reserved_labels(self, show_id: UUID, labels: Sequence[str]) -> List[str]:
        return sorted(
            seat.label
            for seat in self.store.get_seats_by_ids(show_id, labels)
            if seat.is_reserved
        )

    def _replay(self, booking: Booking, show_id: UUID, labels: Sequence[str]) -> Booking:
        """Return an earlier booking made with the same idempotency key, if it matches."""
        booked = {link.seat.label for link in booking.seats}
        if booking.show_id != show_id or booked != set(labels):
            raise InvalidRequest("Idempotency key was already used for a different booking")
        logger.info("Replaying booking %s for idempotency key", booking.id)
        return booking

    def _resolve_integrity_error(
        self,
        exc: IntegrityError,
        show_id: UUID,
        labels: Sequence[str],
        requester: User,
        idempotency_key: Optional[str],
    ) -> Booking:
        # A concurrent request with the same idempotency key committed first
        if idempotency_key is not None:
            existing = self.store.find_booking_by_key(requester.id, idempotency_key)
            if existing is not None:
                return self._replay(existing, show_id, labels)
        # The booking/seat link is unique, so a lost race can also surface here
        conflicting = self._reserved_labels(show_id, labels)
        if conflicting:
            raise SeatUnavailable(conflicting) from exc
        logger.exception("Integrity error while reserving seats on show %s", show_id)
        raise StoreUnavailable() from exc

    # ------------------------------------------------------------------
    # provision_seats
    # ------------------------------------------------------------------

    def provision_seats(self, show_id: UUID) -> int:
        """
        Create the fixed seat grid for a show. Returns the number of seats
        created, or 0 if the show already had seats.
        """
        try:
            if self.store.get_show(show_id) is None:
                raise ShowNotFound(f"Show {show_id} not found")
            if self.store.seats_exist_for_show(show_id):
                logger.info("Show %s already provisioned, skipping", show_id)
                return 0
            created = self.store.bulk_insert_seats(show_id, build_layout())
            self.db.commit()
        except CineBookError:
            self.db.rollback()
            raise
        except IntegrityError:
            # Lost a provisioning race; the unique (show, row, seat) key kept the grid single
            self.db.rollback()
            logger.info("Show %s provisioned concurrently, skipping", show_id)
            return 0
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Store failure while provisioning show %s", show_id)
            raise StoreUnavailable() from exc

        logger.info("Provisioned %d seats for show %s", created, show_id)
        return created

    # ------------------------------------------------------------------
    # list_availability
    # ------------------------------------------------------------------

    def list_availability(self, show_id: UUID) -> List[SeatView]:
        if self.store.get_show(show_id) is None:
            raise ShowNotFound(f"Show {show_id} not found")
        return [_seat_view(seat) for seat in self.store.get_seats(show_id)]


def _seat_view(seat: Seat) -> SeatView:
    return SeatView(
        seat_id=seat.label,
        row=seat.row_label,
        col=seat.seat_number,
        category=seat.tier.value,
        price=price_for(seat.tier, seat.price_override),
        reserved=seat.is_reserved,
    )
