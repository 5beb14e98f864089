"""
Database connection management for Lotwise.

Provides SQLite connection with context managers for session handling.
Follows singleton pattern for the database engine.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from lotwise.config import config

logger = logging.getLogger(__name__)

# Global engine (singleton)
_engine = None
_engine_lock = threading.Lock()


def get_engine():
    """
    Get or create database engine (singleton pattern).

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                db_path = config.db_path
                db_path.parent.mkdir(parents=True, exist_ok=True)

                _engine = create_engine(
                    f"sqlite:///{db_path}",
                    echo=False,
                    connect_args={"check_same_thread": False},
                )
                logger.info(f"Database engine initialized: {db_path}")

    return _engine


def init_db() -> None:
    """
    Initialize database tables.

    Creates all tables defined in the models if they don't exist.
    Safe to call multiple times.
    """
    from lotwise.db.models import (  # noqa: F401
        AssetRow,
        RealizedGainRow,
        TaxLotRow,
    )

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables initialized")


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Get database session with automatic cleanup.

    Commits on successful exit, rolls back on exception, always closes.
    """
    engine = get_engine()
    session = Session(engine)

    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(
            "Database transaction failed, rolling back: %s",
            str(e),
            exc_info=True,
        )
        session.rollback()
        raise
    finally:
        session.close()


def reset_engine() -> None:
    """
    Reset the global engine instance.

    Used by tests that point config.db_path at a temporary file.
    """
    global _engine

    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None
            logger.info("Database engine reset")
