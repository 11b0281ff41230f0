"""Database configuration for the Checklist Scheduler."""
from typing import Generator
from sqlmodel import create_engine, Session
import os
from dotenv import load_dotenv
from sqlalchemy import event

from app.utils.logger import get_logger

# Load environment variables but prioritize local development
load_dotenv()

logger = get_logger("checklist-db")

# Use the DATABASE_URL from environment variable, with fallback to SQLite for local dev
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./checklist_scheduler.db")
IS_SQLITE = DATABASE_URL.startswith("sqlite")

logger.info("Database configured", backend="sqlite" if IS_SQLITE else DATABASE_URL.split(":", 1)[0])

# SQLite connections are shared across the threadpool FastAPI runs handlers in
connect_args = {"check_same_thread": False} if IS_SQLITE else {}

engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def enable_sqlite_foreign_keys(target_engine):
    """Turn on foreign keys and WAL mode for every new SQLite connection."""
    @event.listens_for(target_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


if IS_SQLITE:
    enable_sqlite_foreign_keys(engine)


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
