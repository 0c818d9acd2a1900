"""
Engine, session factory and the FastAPI session dependency.

SQLite URLs (the default) disable the same-thread check so the request
threadpool can share connections, and turn on foreign keys per connection.
Other URLs get a pooled engine sized from settings.
"""
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Iterator, Optional
from core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(url, connect_args={"check_same_thread": False}, echo=settings.DEBUG)

        @event.listens_for(sqlite_engine, "connect")
        def enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create missing tables. Existing tables are left alone."""
    import models  # noqa: F401  (registers tables on Base.metadata)

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Ensured tables: {', '.join(sorted(Base.metadata.tables))}")


def get_db() -> Iterator[Session]:
    """
    One session per request.

    Commits after the handler returns; rolls back if it raised. HTTP errors
    raised on purpose are not logged as database failures.
    """
    from fastapi import HTTPException

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        if not isinstance(e, HTTPException):
            logger.error(f"Rolled back request transaction: {type(e).__name__}: {e}")
        raise
    finally:
        session.close()


def check_db_connection() -> bool:
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database unreachable: {e}")
        return False
    return True
