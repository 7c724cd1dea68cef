import uuid
from sqlalchemy import Column, String, DateTime, func, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from cinebook.db.session import Base

class Show(Base):
    __tablename__ = "shows"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    movie_id = Column(Uuid(as_uuid=True), ForeignKey("movies.id"), nullable=False, index=True)
    theatre_name = Column(String(255), nullable=False)
    show_datetime = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    movie = relationship("Movie", back_populates="shows")
    # Seats are owned by the show and go with it on deletion
    seats = relationship("Seat", back_populates="show", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="show")
