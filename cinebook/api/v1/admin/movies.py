from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cinebook.db.session import get_db
from cinebook.api.deps import get_current_admin_user
from cinebook.core.errors import MovieHasShows, MovieNotFound
from cinebook.models.user import User
from cinebook.models.movie import Movie, MovieCredit, CreditKind
from cinebook.models.show import Show
from cinebook.schemas.movie import (
    MovieCreate,
    MovieUpdate,
    Movie as MovieSchema,
    CastCrewUpdate,
)

router = APIRouter(prefix="/admin/movies", tags=["Admin - Movies"])


def _get_movie_or_404(db: Session, movie_id: UUID) -> Movie:
    movie = db.query(Movie).filter(Movie.id == movie_id).first()
    if not movie:
        raise MovieNotFound("Movie not found")
    return movie


# ---------------------------------------------------------------------------
# Movie CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=MovieSchema, status_code=status.HTTP_201_CREATED)
def create_movie(
    data: MovieCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = Movie(**data.model_dump())
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@router.patch("/{movie_id}", response_model=MovieSchema)
def update_movie(
    movie_id: UUID,
    data: MovieUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = _get_movie_or_404(db, movie_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(movie, field, value)

    db.commit()
    db.refresh(movie)
    return movie


@router.delete("/{movie_id}", status_code=status.HTTP_200_OK)
def delete_movie(
    movie_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = _get_movie_or_404(db, movie_id)

    # Shows own seats and bookings; they must be removed first
    if db.query(Show.id).filter(Show.movie_id == movie_id).first():
        raise MovieHasShows("Delete the movie's shows before deleting the movie")

    # Credits cascade-delete via the ORM relationship
    db.delete(movie)
    db.commit()
    return {"id": str(movie_id), "deleted": True}


# ---------------------------------------------------------------------------
# Cast & crew
# ---------------------------------------------------------------------------


@router.put("/{movie_id}/cast-crew", response_model=MovieSchema)
def replace_cast_crew(
    movie_id: UUID,
    data: CastCrewUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Replace both credit lists; list order becomes display order."""
    movie = _get_movie_or_404(db, movie_id)

    credits = []
    for kind, entries in ((CreditKind.cast, data.cast), (CreditKind.crew, data.crew)):
        for order, entry in enumerate(entries):
            credits.append(MovieCredit(kind=kind, display_order=order, **entry.model_dump()))
    movie.credits = credits

    db.commit()
    db.refresh(movie)
    return movie
