"""Database models, engine, and session management."""

from routerchat.db.base import Base, TimestampMixin
from routerchat.db.engine import (
    build_engine,
    init_db,
    verify_database_connection,
)
from routerchat.db.models import CredentialRecord, MessageRecord
from routerchat.db.session import create_session_factory

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Engine
    "build_engine",
    "init_db",
    "verify_database_connection",
    # Session
    "create_session_factory",
    # Models
    "CredentialRecord",
    "MessageRecord",
]
