import uuid
import enum
from sqlalchemy import Column, String, Boolean, Integer, DECIMAL, ForeignKey, UniqueConstraint, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from cinebook.db.session import Base

class SeatTier(str, enum.Enum):
    STANDARD = "Standard"
    PREMIUM = "Premium"
    VIP = "VIP"

class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("show_id", "row_label", "seat_number", name="uq_seat_show_position"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    show_id = Column(Uuid(as_uuid=True), ForeignKey("shows.id", ondelete="CASCADE"), nullable=False, index=True)
    row_label = Column(String(5), nullable=False)
    seat_number = Column(Integer, nullable=False)
    tier = Column(SAEnum(SeatTier, native_enum=False), nullable=False)
    price_override = Column(DECIMAL(10, 2), nullable=True) # exception to the tier price table
    # Written only through CatalogStore.conditionally_reserve_seats
    is_reserved = Column(Boolean, nullable=False, default=False, index=True)
    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=True, index=True)

    show = relationship("Show", back_populates="seats")
    booking = relationship("Booking", foreign_keys=[booking_id])

    @property
    def label(self) -> str:
        return f"{self.row_label}{self.seat_number}"
