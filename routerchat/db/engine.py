"""
Database engine configuration.

Creates the SQLAlchemy engine for SQLite (default) or another database URL.
"""

from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from routerchat.config import Settings
from routerchat.core import get_logger
from routerchat.db.base import Base

logger = get_logger(__name__)


def build_engine(settings: Settings) -> Engine:
    """Create an engine for ``settings.database_url``."""
    database_url = settings.database_url

    if settings.is_sqlite:
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same memory DB.
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=settings.debug,
            )

        db_path = database_url.replace("sqlite:///", "")
        db_dir = Path(db_path).parent
        if db_dir and not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created database directory: {db_dir}")

        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
            pool_pre_ping=True,
        )

    return create_engine(database_url, echo=settings.debug, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)


def verify_database_connection(engine: Engine) -> bool:
    """
    Verify database connectivity with a simple query.

    Returns:
        True if connection successful, False otherwise.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
