import uuid
from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from cinebook.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_booking_user_idempotency_key"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    show_id = Column(Uuid(as_uuid=True), ForeignKey("shows.id"), nullable=False, index=True)
    total_price = Column(DECIMAL(10, 2), nullable=False)
    seat_count = Column(Integer, nullable=False)
    idempotency_key = Column(String(64), nullable=True)
    booking_time = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="bookings")
    show = relationship("Show", back_populates="bookings")
    seats = relationship(
        "BookingSeat",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingSeat.position",
    )

class BookingSeat(Base):
    __tablename__ = "booking_seats"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=False, index=True)
    # unique: a seat can be referenced by at most one booking
    seat_id = Column(Uuid(as_uuid=True), ForeignKey("seats.id"), nullable=False, unique=True)
    position = Column(Integer, nullable=False) # order within the request

    booking = relationship("Booking", back_populates="seats")
    seat = relationship("Seat")
