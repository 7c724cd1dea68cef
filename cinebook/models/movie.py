import uuid
import enum
from sqlalchemy import Column, String, DateTime, Date, func, Text, Integer, ForeignKey, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from cinebook.db.session import Base

class CreditKind(str, enum.Enum):
    cast = "cast"
    crew = "crew"

class Movie(Base):
    __tablename__ = "movies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False, index=True)
    genre = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    poster_url = Column(Text, nullable=False)
    release_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    credits = relationship(
        "MovieCredit",
        back_populates="movie",
        cascade="all, delete-orphan",
        order_by="MovieCredit.display_order",
    )
    shows = relationship("Show", back_populates="movie")

    @property
    def cast(self):
        return [c for c in self.credits if c.kind == CreditKind.cast]

    @property
    def crew(self):
        return [c for c in self.credits if c.kind == CreditKind.crew]

class MovieCredit(Base):
    __tablename__ = "movie_credits"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    movie_id = Column(Uuid(as_uuid=True), ForeignKey("movies.id"), nullable=False, index=True)
    kind = Column(SAEnum(CreditKind, native_enum=False), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(255), nullable=True) # character for cast, job for crew
    photo_url = Column(Text, nullable=True)
    display_order = Column(Integer, default=0)

    movie = relationship("Movie", back_populates="credits")
