import logging
from datetime import datetime, timezone

import psycopg2
from psycopg2 import sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy.orm import Session

from cinebook.core.config import settings
from cinebook.core.security import get_password_hash
from cinebook.models.user import User
from cinebook.models.movie import CreditKind, Movie, MovieCredit
from cinebook.models.show import Show
from cinebook.services.reservation import ReservationEngine

logger = logging.getLogger(__name__)

SEED_MOVIES = [
    {
        "title": "Inception",
        "description": "A dream heist thriller by Christopher Nolan.",
        "poster_url": "https://image.tmdb.org/t/p/original/qmDpIHrmpJINaRKAfWQfftjCdyi.jpg",
        "genre": "Sci-Fi",
        "cast": [
            ("Leonardo DiCaprio", "Dom Cobb"),
            ("Joseph Gordon-Levitt", "Arthur"),
            ("Elliot Page", "Ariadne"),
        ],
        "crew": [("Christopher Nolan", "Director"), ("Hans Zimmer", "Music")],
    },
    {
        "title": "The Dark Knight",
        "description": "Batman faces the Joker in Gotham City.",
        "poster_url": "https://image.tmdb.org/t/p/original/qJ2tW6WMUDux911r6m7haRef0WH.jpg",
        "genre": "Action",
        "cast": [
            ("Christian Bale", "Bruce Wayne"),
            ("Heath Ledger", "Joker"),
            ("Aaron Eckhart", "Harvey Dent"),
        ],
        "crew": [("Christopher Nolan", "Director"), ("Wally Pfister", "Cinematography")],
    },
]
SEED_THEATRES = ["PVR Cinemas", "INOX", "Cinepolis"]
SEED_HOURS = [10, 14, 18]


def create_database():
    """Create the PostgreSQL database if it doesn't exist. No-op for SQLite."""
    if settings.is_sqlite:
        return
    try:
        # Connect to default 'postgres' database to check/create target DB
        con = psycopg2.connect(
            user=settings.POSTGRES_USER,
            password=settings.POSTGRES_PASSWORD,
            host=settings.POSTGRES_SERVER,
            port=settings.POSTGRES_PORT,
            dbname="postgres"
        )
        con.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        cur = con.cursor()

        cur.execute(
            "SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s",
            (settings.POSTGRES_DB,),
        )
        exists = cur.fetchone()

        if not exists:
            logger.info("Database %s does not exist. Creating...", settings.POSTGRES_DB)
            cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(settings.POSTGRES_DB)))
            logger.info("Database %s created successfully.", settings.POSTGRES_DB)
        else:
            logger.info("Database %s already exists.", settings.POSTGRES_DB)

        cur.close()
        con.close()
    except psycopg2.Error as e:
        # DATABASE_URL may point at a database this role cannot list; carry on
        logger.error("Error creating database: %s", e)


def seed_database(db: Session) -> None:
    """Create the admin account and, on an empty catalog, demo movies and today's shows."""
    if not db.query(User).filter(User.email == settings.FIRST_ADMIN_EMAIL).first():
        db.add(User(
            email=settings.FIRST_ADMIN_EMAIL,
            password_hash=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            full_name="Administrator",
            role="admin",
        ))
        db.commit()
        logger.info("Admin created: %s", settings.FIRST_ADMIN_EMAIL)

    if db.query(Movie.id).first():
        return

    today = datetime.now(timezone.utc)
    shows = []
    for data in SEED_MOVIES:
        movie = Movie(**{k: v for k, v in data.items() if k not in ("cast", "crew")})
        movie.credits = [
            MovieCredit(kind=kind, name=name, role=role, display_order=order)
            for kind in CreditKind
            for order, (name, role) in enumerate(data[kind.value])
        ]
        db.add(movie)
        db.flush()
        for theatre, hour in zip(SEED_THEATRES, SEED_HOURS):
            show = Show(
                movie_id=movie.id,
                theatre_name=theatre,
                show_datetime=today.replace(hour=hour, minute=0, second=0, microsecond=0),
            )
            db.add(show)
            shows.append(show)
    db.commit()

    engine = ReservationEngine(db)
    seats = sum(engine.provision_seats(show.id) for show in shows)
    logger.info("Seeded %d movies, %d shows, %d seats.", len(SEED_MOVIES), len(shows), seats)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_database()
