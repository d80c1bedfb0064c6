"""
Database utilities and SQLAlchemy session management.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

logger = logging.getLogger(__name__)

engine: Optional[Engine] = None

SessionLocal = sessionmaker(
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)

Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """
    Build an engine for the given URL with pool settings suited to the backend.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Required for SQLite when requests are served from multiple threads.
        connect_args["check_same_thread"] = False

        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory SQLite lives inside a single connection; share it.
            return create_engine(
                database_url,
                poolclass=StaticPool,
                future=True,
                echo=False,
                connect_args=connect_args,
            )
        return create_engine(database_url, future=True, echo=False, connect_args=connect_args)

    if database_url.startswith("postgresql"):
        # PostgreSQL connection timeout (in seconds)
        connect_args.setdefault("connect_timeout", 10)

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_pre_ping=True,
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_timeout=10,    # Timeout when getting connection from pool
        future=True,
        echo=False,
        connect_args=connect_args,
    )


def init_db(database_url: str) -> Engine:
    """
    Bind the session factory to DATABASE_URL and create tables.
    Should be invoked once during startup.
    """
    global engine
    try:
        from sheetsync import models  # noqa: F401  (side-effect import)
        engine = create_db_engine(database_url)
        SessionLocal.configure(bind=engine)
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Error initializing database: {e}", exc_info=True)
        raise
    return engine


@contextmanager
def db_session() -> Generator:
    """
    Context manager that yields a SQLAlchemy session and guarantees cleanup.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
