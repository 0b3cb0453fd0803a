"""
SQLAlchemy engine and sessions.

All timestamps are written in UTC. PostgreSQL connections pin their session
time zone to UTC so `now()` defaults agree with the application clock; SQLite
(local development, the CLI) gets foreign-key enforcement switched on.
"""

from collections.abc import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from shared.config.settings import DATABASE_URL, settings


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=settings.db_pool_recycle_seconds,
        connect_args={"connect_timeout": 10, "options": "-c timezone=UTC"},
    )


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session (FastAPI dependency)."""
    with SessionLocal() as db:
        yield db


def safe_commit(db: Session) -> None:
    """Commit, or roll back and re-raise so the session stays usable."""
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
