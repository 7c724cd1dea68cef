import uuid
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from cinebook.core.errors import (
    InvalidRequest,
    ReservationTimeout,
    SeatNotFound,
    SeatUnavailable,
    ShowNotFound,
    StoreUnavailable,
)
from cinebook.models.booking import Booking, BookingSeat
from cinebook.db.session import SessionLocal
from cinebook.models.seat import Seat
from cinebook.services.reservation import ReservationEngine

from conftest import reserved_labels


@pytest.fixture
def engine(db):
    return ReservationEngine(db)


# ---------------------------------------------------------------------------
# Success path
# ---------------------------------------------------------------------------


def test_reserve_flips_seats_and_records_booking(db, engine, show, user):
    booking = engine.reserve(show.id, ["A1", "C3", "H10"], user)

    assert booking.show_id == show.id
    assert booking.user_id == user.id
    assert booking.seat_count == 3
    # VIP + Premium + Standard
    assert booking.total_price == Decimal("800.00")
    assert [link.seat.label for link in booking.seats] == ["A1", "C3", "H10"]
    assert reserved_labels(db, show.id) == ["A1", "C3", "H10"]

    seats = db.query(Seat).filter(Seat.show_id == show.id, Seat.is_reserved == True).all()  # noqa: E712
    assert {seat.booking_id for seat in seats} == {booking.id}


def test_reserve_keeps_request_order(engine, show, user):
    booking = engine.reserve(show.id, ["B2", "A1", "B1"], user)
    assert [link.seat.label for link in booking.seats] == ["B2", "A1", "B1"]


def test_reserve_normalizes_labels(db, engine, show, user):
    engine.reserve(show.id, ["a1", " b2 "], user)
    assert reserved_labels(db, show.id) == ["A1", "B2"]


def test_reserve_allows_the_cap(engine, show, user):
    seats = [f"F{n}" for n in range(1, 9)]
    booking = engine.reserve(show.id, seats, user)
    assert booking.seat_count == 8
    assert booking.total_price == Decimal("1200.00")


def test_total_uses_price_override(db, engine, show, user):
    seat = db.query(Seat).filter(
        Seat.show_id == show.id, Seat.row_label == "A", Seat.seat_number == 1
    ).one()
    seat.price_override = Decimal("99.00")
    db.commit()

    booking = engine.reserve(show.id, ["A1", "A2"], user)
    assert booking.total_price == Decimal("499.00")


# ---------------------------------------------------------------------------
# Failure paths leave seat state untouched
# ---------------------------------------------------------------------------


def test_already_reserved_seat_conflicts(db, engine, show, user, other_user):
    engine.reserve(show.id, ["A1", "A2"], user)

    with pytest.raises(SeatUnavailable) as exc_info:
        engine.reserve(show.id, ["A2", "A3"], other_user)

    assert exc_info.value.extras["conflicting_seats"] == ["A2"]
    assert exc_info.value.code == "seat_unavailable"
    assert reserved_labels(db, show.id) == ["A1", "A2"]
    assert db.query(Booking).count() == 1


def test_same_user_cannot_rebook_own_seat(engine, show, user):
    engine.reserve(show.id, ["D4"], user)
    with pytest.raises(SeatUnavailable):
        engine.reserve(show.id, ["D4"], user)


def test_unknown_show(db, engine, user):
    with pytest.raises(ShowNotFound):
        engine.reserve(uuid.uuid4(), ["A1"], user)
    assert db.query(Booking).count() == 0


def test_seat_outside_layout_is_not_found(db, engine, show, user):
    with pytest.raises(SeatNotFound) as exc_info:
        engine.reserve(show.id, ["A1", "Z9"], user)

    assert exc_info.value.extras["missing_seats"] == ["Z9"]
    assert reserved_labels(db, show.id) == []
    assert db.query(Booking).count() == 0


def test_seat_of_unprovisioned_show_is_not_found(db, engine, make_show, user):
    bare = make_show(provision=False)
    with pytest.raises(SeatNotFound):
        engine.reserve(bare.id, ["A1"], user)


def test_malformed_label_is_not_found(engine, show, user):
    with pytest.raises(SeatNotFound) as exc_info:
        engine.reserve(show.id, ["seat-one"], user)
    assert exc_info.value.extras["missing_seats"] == ["SEAT-ONE"]


def test_empty_request_is_invalid(engine, show, user):
    with pytest.raises(InvalidRequest):
        engine.reserve(show.id, [], user)


def test_nine_seats_exceed_cap(db, engine, show, user):
    seats = [f"G{n}" for n in range(1, 10)]
    with pytest.raises(InvalidRequest) as exc_info:
        engine.reserve(show.id, seats, user)

    assert exc_info.value.extras["max_seats"] == 8
    assert reserved_labels(db, show.id) == []


def test_duplicates_are_invalid(db, engine, show, user):
    with pytest.raises(InvalidRequest) as exc_info:
        engine.reserve(show.id, ["A1", "a1"], user)

    assert exc_info.value.extras["duplicate_seats"] == ["A1"]
    assert reserved_labels(db, show.id) == []


def test_cap_is_configurable(db, show, user):
    engine = ReservationEngine(db, max_seats_per_booking=2)
    with pytest.raises(InvalidRequest):
        engine.reserve(show.id, ["A1", "A2", "A3"], user)


def test_store_failure_after_flip_rolls_back(db, engine, show, user, monkeypatch):
    engine.reserve(show.id, ["E5"], user)
    before = reserved_labels(db, show.id)

    def boom(*args, **kwargs):
        raise SQLAlchemyError("connection reset")

    # Fails after the conditional update has already flipped the seats
    monkeypatch.setattr(engine.store, "attach_seats", boom)

    with pytest.raises(StoreUnavailable) as exc_info:
        engine.reserve(show.id, ["E6", "E7"], user)

    assert exc_info.value.status_code == 503
    assert reserved_labels(db, show.id) == before
    assert db.query(Booking).count() == 1
    assert db.query(BookingSeat).count() == 1


def test_lock_timeout_rolls_back(db, engine, show, user, monkeypatch):
    def timed_out(*args, **kwargs):
        raise OperationalError("UPDATE seats", {}, Exception("database is locked"))

    monkeypatch.setattr(engine.store, "conditionally_reserve_seats", timed_out)

    with pytest.raises(ReservationTimeout) as exc_info:
        engine.reserve(show.id, ["B5"], user)

    assert exc_info.value.code == "reservation_timeout"
    assert reserved_labels(db, show.id) == []
    assert db.query(Booking).count() == 0


def test_lost_race_after_lock_read_fails_whole_request(db, engine, show, other_user, monkeypatch):
    """C2 is booked elsewhere between our seat read and our conditional update."""
    real_lock = engine.store.lock_seats

    def lock_then_lose_race(seat_ids):
        rows = real_lock(seat_ids)
        competitor = SessionLocal()
        try:
            competitor.query(Seat).filter(
                Seat.show_id == show.id, Seat.row_label == "C", Seat.seat_number == 2
            ).update({"is_reserved": True}, synchronize_session=False)
            competitor.commit()
        finally:
            competitor.close()
        return rows

    monkeypatch.setattr(engine.store, "lock_seats", lock_then_lose_race)

    with pytest.raises(SeatUnavailable) as exc_info:
        engine.reserve(show.id, ["C1", "C2"], other_user)

    assert exc_info.value.extras["conflicting_seats"] == ["C2"]
    # C1 was flipped by the conditional update and then rolled back
    assert reserved_labels(db, show.id) == ["C2"]
    assert db.query(Booking).count() == 0


# ---------------------------------------------------------------------------
# Idempotency keys
# ---------------------------------------------------------------------------


def test_idempotency_key_replays_booking(db, engine, show, user):
    first = engine.reserve(show.id, ["A5", "A6"], user, idempotency_key="checkout-1")
    second = engine.reserve(show.id, ["A6", "A5"], user, idempotency_key="checkout-1")

    assert second.id == first.id
    assert db.query(Booking).count() == 1
    assert reserved_labels(db, show.id) == ["A5", "A6"]


def test_idempotency_key_reuse_for_other_seats_is_invalid(db, engine, show, user):
    engine.reserve(show.id, ["A5"], user, idempotency_key="checkout-1")
    with pytest.raises(InvalidRequest):
        engine.reserve(show.id, ["A7"], user, idempotency_key="checkout-1")
    assert reserved_labels(db, show.id) == ["A5"]


def test_idempotency_keys_are_per_user(engine, show, user, other_user):
    mine = engine.reserve(show.id, ["A5"], user, idempotency_key="k")
    theirs = engine.reserve(show.id, ["A6"], other_user, idempotency_key="k")
    assert mine.id != theirs.id


@pytest.mark.parametrize("key", ["", "   "])
def test_blank_idempotency_key_is_invalid(db, engine, show, user, key):
    with pytest.raises(InvalidRequest):
        engine.reserve(show.id, ["A5"], user, idempotency_key=key)
    assert reserved_labels(db, show.id) == []
    assert db.query(Booking).count() == 0


def test_bookings_without_key_do_not_collide(db, engine, show, user):
    engine.reserve(show.id, ["A5"], user)
    engine.reserve(show.id, ["A6"], user)
    assert db.query(Booking).count() == 2


# ---------------------------------------------------------------------------
# Provisioning & availability
# ---------------------------------------------------------------------------


def test_provisioning_is_idempotent(db, engine, make_show):
    show = make_show(provision=False)

    assert engine.provision_seats(show.id) == 80
    first = sorted(
        (s.label, s.tier.value) for s in db.query(Seat).filter(Seat.show_id == show.id)
    )
    assert engine.provision_seats(show.id) == 0
    second = sorted(
        (s.label, s.tier.value) for s in db.query(Seat).filter(Seat.show_id == show.id)
    )

    assert len(second) == 80
    assert first == second


def test_provisioning_unknown_show(engine):
    with pytest.raises(ShowNotFound):
        engine.provision_seats(uuid.uuid4())


def test_availability_projection(engine, show, user):
    engine.reserve(show.id, ["B7"], user)
    views = engine.list_availability(show.id)

    assert len(views) == 80
    assert [v.seat_id for v in views[:3]] == ["A1", "A2", "A3"]
    assert views[9].seat_id == "A10"
    by_label = {v.seat_id: v for v in views}
    assert by_label["A1"].category == "VIP"
    assert by_label["A1"].price == Decimal("400")
    assert by_label["D1"].category == "Premium"
    assert by_label["H10"].category == "Standard"
    assert by_label["H10"].price == Decimal("150")
    assert by_label["B7"].reserved is True
    assert sum(v.reserved for v in views) == 1


def test_availability_unknown_show(engine):
    with pytest.raises(ShowNotFound):
        engine.list_availability(uuid.uuid4())
