"""
Database configuration and session management
"""
from typing import Generator

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from lms.config import get_settings
from lms.models.database_models import Base

DATABASE_URL = get_settings().database_url


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine; SQLite connections get foreign keys switched on"""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, connect_args=connect_args, **kwargs)
    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return engine


logger.debug(f"Using database URL: {DATABASE_URL.split('@')[-1]}")

engine = build_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine = None):
    """
    Create all database tables
    """
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind: Engine = None):
    """
    Drop all database tables (for testing/reset)
    """
    Base.metadata.drop_all(bind=bind or engine)
