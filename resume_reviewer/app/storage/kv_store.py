import logging
from typing import Protocol

from sqlalchemy.orm import Session, sessionmaker

from resume_reviewer.app.models.kv_entry import KeyValueEntry

log = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """The key-value collaborator used as the record store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def list_keys(self, prefix: str) -> list[str]: ...


class SqlAlchemyKeyValueStore:
    """Key-value store kept in the `kv_entries` table.

    Each operation opens its own session from the factory, so the store can be
    shared across requests and called from worker threads.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        """Return the value stored under `key`, or None.

        Args:
            key (str): The key to read.

        Returns:
            str | None: The stored value, or None when the key is absent.

        Notes:
            1. Performs a single primary-key lookup.

        """
        db: Session = self._session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            return entry.value if entry is not None else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        """Create or overwrite the value stored under `key`.

        Args:
            key (str): The key to write.
            value (str): The serialized value.

        Returns:
            None

        Notes:
            1. Look up the existing entry by primary key.
            2. Update it in place, or add a new entry when absent.
            3. Commit so the write is visible to subsequent reads before returning.
            4. Roll back and re-raise on any database error.

        """
        _msg = f"Writing key-value entry {key}"
        log.debug(_msg)
        db: Session = self._session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def list_keys(self, prefix: str) -> list[str]:
        """Return every key starting with `prefix`, in key order."""
        db: Session = self._session_factory()
        try:
            rows = (
                db.query(KeyValueEntry.key)
                .filter(KeyValueEntry.key.startswith(prefix, autoescape=True))
                .order_by(KeyValueEntry.key)
                .all()
            )
            return [row[0] for row in rows]
        finally:
            db.close()
