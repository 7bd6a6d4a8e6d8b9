"""Database repositories for data access."""

from routerchat.db.repositories.credentials import InMemoryCredentialStore, SqlCredentialStore
from routerchat.db.repositories.messages import MessageRepository

__all__ = [
    "InMemoryCredentialStore",
    "MessageRepository",
    "SqlCredentialStore",
]
