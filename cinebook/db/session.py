from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from cinebook.core.config import settings


def _engine_kwargs() -> dict:
    if settings.is_sqlite:
        # SQLite serializes writers; the busy timeout bounds how long a
        # reservation waits for the write lock
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.RESERVATION_TIMEOUT_MS / 1000,
            }
        }
    # For PostgreSQL, we might need to adjust pool_size and max_overflow in production
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs())

if settings.is_sqlite:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
