"""Engine and session factory.

API requests get a session per request through ``get_db``; worker tasks open
their own ``SessionLocal`` and close it when the task ends.
"""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from notification_engine.core.config import settings


def build_engine(dsn: str) -> Engine:
    if dsn.startswith("sqlite"):
        sqlite_engine = create_engine(dsn, connect_args={"check_same_thread": False})

        # SQLite leaves foreign keys off per connection; reminder occurrences rely on them
        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    # Worker processes keep pooled connections idle between cron ticks
    return create_engine(dsn, pool_pre_ping=True)


engine = build_engine(settings.APP_DATABASE_DSN)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
