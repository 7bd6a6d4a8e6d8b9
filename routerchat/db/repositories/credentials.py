"""Credential stores keyed by backend."""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from routerchat.core import CredentialNotFoundError, get_logger
from routerchat.db.models import CredentialRecord
from routerchat.models import Backend

logger = get_logger(__name__)


class SqlCredentialStore:
    """Credential store persisted in the application database."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def get(self, backend: Backend) -> str:
        with self.session_factory() as db:
            record = db.get(CredentialRecord, backend.value)
            if record is None:
                raise CredentialNotFoundError(backend.value)
            return record.secret

    def put(self, backend: Backend, secret: str) -> None:
        """Save or update the secret for a backend."""
        with self.session_factory() as db:
            record = db.get(CredentialRecord, backend.value)
            if record is None:
                db.add(CredentialRecord(backend=backend.value, secret=secret))
            else:
                record.secret = secret
            db.commit()
        logger.info("Credential saved", data={"backend": backend.value})

    def delete(self, backend: Backend) -> None:
        """Delete a backend's secret; deleting a missing one is not an error."""
        with self.session_factory() as db:
            record = db.get(CredentialRecord, backend.value)
            if record is not None:
                db.delete(record)
                db.commit()
                logger.info("Credential deleted", data={"backend": backend.value})

    def exists(self, backend: Backend) -> bool:
        with self.session_factory() as db:
            return db.get(CredentialRecord, backend.value) is not None


class InMemoryCredentialStore:
    """Process-local credential store."""

    def __init__(self, secrets: dict[Backend, str] | None = None) -> None:
        self._secrets: dict[Backend, str] = dict(secrets or {})

    def get(self, backend: Backend) -> str:
        try:
            return self._secrets[backend]
        except KeyError:
            raise CredentialNotFoundError(backend.value) from None

    def put(self, backend: Backend, secret: str) -> None:
        self._secrets[backend] = secret

    def delete(self, backend: Backend) -> None:
        self._secrets.pop(backend, None)

    def exists(self, backend: Backend) -> bool:
        return backend in self._secrets
