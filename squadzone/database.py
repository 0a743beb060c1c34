# squadzone/database.py
"""
Database engine, session factory, and metadata shared across the application.
"""

from datetime import datetime
import logging
import sqlite3
from typing import Any, Dict, Generator

from fastapi import Depends
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from .core.config import settings

logger = logging.getLogger(__name__)


def _build_engine_kwargs(db_url: str) -> Dict[str, Any]:
    """
    Pool settings for server databases; SQLite gets a thread-tolerant connection.

    Lock waits (SQLite) and statements (PostgreSQL) are capped at the
    operation budget so a stuck query ends the worker running it.
    """
    budget = settings.operation_timeout_seconds
    if db_url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False, "timeout": budget},
            "echo": settings.database_echo,
        }
    connect_args: Dict[str, Any] = {}
    if db_url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={int(budget * 1000)}"
    return {
        "connect_args": connect_args,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
        "echo": settings.database_echo,
    }


engine: Engine = create_engine(settings.database_url, **_build_engine_kwargs(settings.database_url))


@event.listens_for(Engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    if isinstance(dbapi_connection, sqlite3.Connection):
        # SQLite ships with FK enforcement off
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_session_factory() -> sessionmaker:
    """FastAPI dependency returning the session factory (overridden in tests)."""
    return SessionLocal


def get_db(factory: sessionmaker = Depends(get_session_factory)) -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create tables that do not exist yet."""
    from . import models  # noqa: F401  (registers mappers on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)
