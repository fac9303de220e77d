"""
Database connection and session management for DoseTrack
"""

import logging
from sqlalchemy import create_engine, event, text, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
from typing import Dict, Generator, Optional

from config import settings


logger = logging.getLogger(__name__)


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the given URL.

    SQLite engines share one connection across threads and enforce
    foreign keys, so activity rows are deleted with their medication.
    """
    if not url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True
        )

    sqlite_engine = create_engine(
        url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=echo
    )

    @event.listens_for(sqlite_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

# Objects stay readable after the service that loaded them commits
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)

# Base class for ORM models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI routes to get database session.
    Automatically closes session after request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database session.
    Services use it when the caller does not pass a session.

    Usage:
        with get_db_context() as db:
            db.query(Medication).filter(Medication.owner_id == owner_id).all()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Initialize database tables.
    Creates the medication and activity tables if missing.
    """
    # Import models to register them with Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info(f"Database initialized at: {settings.DATABASE_URL}")


def check_connection(bind: Optional[Engine] = None) -> bool:
    """Whether the database answers a trivial query"""
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.exception("Database connection check failed")
        return False


def table_counts(db: Session) -> Dict[str, int]:
    """Row counts of the medication and activity tables"""
    import models

    return {
        models.Medication.__tablename__: db.query(func.count(models.Medication.id)).scalar(),
        models.MedicationActivity.__tablename__: db.query(
            func.count(models.MedicationActivity.id)
        ).scalar(),
    }


__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "create_db_engine",
    "get_db",
    "get_db_context",
    "init_db",
    "check_connection",
    "table_counts",
]
