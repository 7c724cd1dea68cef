import os
import tempfile

# Settings and the engine are built at import time, so point them at a
# throwaway SQLite file before anything from cinebook is imported.
_DB_DIR = tempfile.mkdtemp(prefix="cinebook-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'cinebook.db')}"
os.environ["SEED_DATABASE"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from cinebook.core.security import create_access_token, get_password_hash  # noqa: E402
from cinebook.db.base import Base  # noqa: E402
from cinebook.db.session import SessionLocal, engine  # noqa: E402
from cinebook.main import app  # noqa: E402
from cinebook.models.movie import Movie  # noqa: E402
from cinebook.models.seat import Seat  # noqa: E402
from cinebook.models.show import Show  # noqa: E402
from cinebook.models.user import User  # noqa: E402
from cinebook.services.reservation import ReservationEngine  # noqa: E402

PASSWORD = "secret123"
_password_hash = None


def _hashed_password() -> str:
    # bcrypt is slow; hash once per run
    global _password_hash
    if _password_hash is None:
        _password_hash = get_password_hash(PASSWORD)
    return _password_hash


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: str = "user") -> User:
        user = User(
            email=email,
            password_hash=_hashed_password(),
            full_name=email.split("@")[0].title(),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user("alice@example.com")


@pytest.fixture
def other_user(make_user):
    return make_user("bob@example.com")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role="admin")


def auth_headers(user: User) -> dict:
    token = create_access_token(subject=str(user.id), role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def movie(db):
    movie = Movie(
        title="Inception",
        genre="Sci-Fi",
        description="A dream heist thriller.",
        poster_url="https://example.com/inception.jpg",
    )
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@pytest.fixture
def make_show(db, movie):
    def _make_show(provision: bool = True, theatre_name: str = "PVR Cinemas") -> Show:
        show = Show(
            movie_id=movie.id,
            theatre_name=theatre_name,
            show_datetime=datetime.now(timezone.utc) + timedelta(days=1),
        )
        db.add(show)
        db.commit()
        db.refresh(show)
        if provision:
            ReservationEngine(db).provision_seats(show.id)
            db.refresh(show)
        return show

    return _make_show


@pytest.fixture
def show(make_show):
    """A show with the full 80-seat grid provisioned."""
    return make_show()


def reserved_labels(db, show_id) -> list:
    """Fresh read of the reserved seat labels of a show."""
    db.expire_all()
    seats = (
        db.query(Seat)
        .filter(Seat.show_id == show_id, Seat.is_reserved == True)  # noqa: E712
        .all()
    )
    return sorted(seat.label for seat in seats)
