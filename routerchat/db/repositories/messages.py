"""Repository for persisted transcript entries."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from routerchat.core.time import as_aware_utc, to_naive_utc
from routerchat.db.models import MessageRecord
from routerchat.models import Backend, Role, TranscriptEntry


def _to_record(entry: TranscriptEntry) -> MessageRecord:
    return MessageRecord(
        id=entry.id,
        role=entry.role.value,
        content=entry.content,
        timestamp=to_naive_utc(entry.timestamp),
        backend=entry.backend.value,
        model=entry.model,
    )


def _to_entry(record: MessageRecord) -> TranscriptEntry:
    return TranscriptEntry(
        id=record.id,
        content=record.content,
        role=Role(record.role),
        timestamp=as_aware_utc(record.timestamp),
        backend=Backend(record.backend),
        model=record.model,
    )


class MessageRepository:
    """SQL-backed message store: insert, delete all, fetch in time order."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def insert(self, entry: TranscriptEntry) -> None:
        """Insert a transcript entry."""
        with self.session_factory() as db:
            db.add(_to_record(entry))
            db.commit()

    def delete_all(self) -> None:
        with self.session_factory() as db:
            db.execute(delete(MessageRecord))
            db.commit()

    def fetch_all_sorted_by_time(self) -> list[TranscriptEntry]:
        """Get all entries ordered by timestamp, insertion order breaking ties."""
        stmt = select(MessageRecord).order_by(
            MessageRecord.timestamp.asc(), MessageRecord.seq.asc()
        )
        with self.session_factory() as db:
            return [_to_entry(record) for record in db.execute(stmt).scalars().all()]
