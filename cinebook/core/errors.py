"""Domain errors with stable codes.

Every error raised by the reservation engine or the catalog routers derives
from ``CineBookError``. The API layer renders them as
``{"error": <code>, "message": <text>, **extras}`` so clients can branch on
``error`` without parsing messages.
"""
from typing import Any, Dict, List, Optional


class CineBookError(Exception):
    code = "internal_error"
    status_code = 500

    def __init__(self, message: str, **extras: Any):
        self.message = message
        self.extras: Dict[str, Any] = extras
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.extras}


# --- NotFound ---

class NotFoundError(CineBookError):
    code = "not_found"
    status_code = 404


class ShowNotFound(NotFoundError):
    code = "show_not_found"


class SeatNotFound(NotFoundError):
    code = "seat_not_found"

    def __init__(self, missing_seats: List[str]):
        super().__init__(
            f"Seat(s) not found for this show: {', '.join(missing_seats)}",
            missing_seats=missing_seats,
        )


class MovieNotFound(NotFoundError):
    code = "movie_not_found"


class BookingNotFound(NotFoundError):
    code = "booking_not_found"


# --- Conflict ---

class ConflictError(CineBookError):
    code = "conflict"
    status_code = 409


class SeatUnavailable(ConflictError):
    code = "seat_unavailable"

    def __init__(self, conflicting_seats: List[str]):
        super().__init__(
            f"Seat(s) already reserved: {', '.join(conflicting_seats)}",
            conflicting_seats=conflicting_seats,
        )


class AlreadyProvisioned(ConflictError):
    code = "already_provisioned"


class ShowHasBookings(ConflictError):
    code = "show_has_bookings"


class MovieHasShows(ConflictError):
    code = "movie_has_shows"


# --- InvalidRequest ---

class InvalidRequest(CineBookError):
    code = "invalid_request"
    status_code = 400


class EmailTaken(InvalidRequest):
    code = "email_taken"


# --- Internal ---

class StoreUnavailable(CineBookError):
    code = "store_unavailable"
    status_code = 503

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Booking store unavailable, retry with backoff")


class ReservationTimeout(StoreUnavailable):
    code = "reservation_timeout"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Reservation did not complete in time, no seats were reserved")
