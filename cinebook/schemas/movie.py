from typing import Optional, List
from pydantic import BaseModel, UUID4
from datetime import date, datetime


# Cast / crew credit
class Credit(BaseModel):
    name: str
    role: Optional[str] = None
    photo_url: Optional[str] = None

    class Config:
        from_attributes = True


class CastCrewUpdate(BaseModel):
    cast: List[Credit] = []
    crew: List[Credit] = []


# Movie — base fields
class MovieBase(BaseModel):
    title: str
    genre: Optional[str] = None
    description: Optional[str] = None
    poster_url: str
    release_date: Optional[date] = None


class MovieCreate(MovieBase):
    pass


class MovieUpdate(BaseModel):
    title: Optional[str] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    poster_url: Optional[str] = None
    release_date: Optional[date] = None


# Browse card (GET /movies)
class MovieSummary(BaseModel):
    id: UUID4
    title: str
    genre: Optional[str] = None
    description: Optional[str] = None
    poster_url: str

    class Config:
        from_attributes = True


# Full detail with credits (GET /movies/{id})
class Movie(MovieBase):
    id: UUID4
    cast: List[Credit] = []
    crew: List[Credit] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
