"""
SQLAlchemy ORM models.

Defines the tables backing transcript persistence and the credential store.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from routerchat.db.base import Base, TimestampMixin


class MessageRecord(Base):
    """A finalized transcript entry."""

    __tablename__ = "messages"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # system, user, assistant
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    backend: Mapped[str] = mapped_column(String(64), nullable=False)
    model: Mapped[str] = mapped_column(String(128), nullable=False)

    __table_args__ = (Index("ix_messages_timestamp", "timestamp"),)


class CredentialRecord(Base, TimestampMixin):
    """API key for one backend."""

    __tablename__ = "credentials"

    backend: Mapped[str] = mapped_column(String(64), primary_key=True)
    secret: Mapped[str] = mapped_column(Text, nullable=False)
