from uuid import UUID
from typing import List, Optional
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from cinebook.db.session import get_db
from cinebook.core.errors import MovieNotFound
from cinebook.models.movie import Movie
from cinebook.models.show import Show
from cinebook.schemas.movie import Movie as MovieSchema, MovieSummary
from cinebook.schemas.show import Show as ShowSchema
from cinebook.schemas.common import PaginatedResponse

router = APIRouter(prefix="/movies", tags=["Movies"])


@router.get("/", response_model=PaginatedResponse[MovieSummary])
def list_movies(
    genre: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(Movie)
    if genre:
        query = query.filter(Movie.genre.ilike(genre))
    if search:
        query = query.filter(Movie.title.ilike(f"%{search}%"))

    total = query.count()
    movies = query.order_by(Movie.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=movies,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{movie_id}", response_model=MovieSchema)
def get_movie(movie_id: UUID, db: Session = Depends(get_db)):
    """Movie detail including cast and crew."""
    movie = (
        db.query(Movie)
        .options(selectinload(Movie.credits))
        .filter(Movie.id == movie_id)
        .first()
    )
    if not movie:
        raise MovieNotFound("Movie not found")
    return movie


@router.get("/{movie_id}/shows", response_model=List[ShowSchema])
def list_movie_shows(movie_id: UUID, db: Session = Depends(get_db)):
    """Upcoming shows for a movie: today onwards, earliest first."""
    if not db.query(Movie.id).filter(Movie.id == movie_id).first():
        raise MovieNotFound("Movie not found")

    start_of_today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return (
        db.query(Show)
        .filter(Show.movie_id == movie_id, Show.show_datetime >= start_of_today)
        .order_by(Show.show_datetime)
        .all()
    )
