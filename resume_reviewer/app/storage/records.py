import asyncio
import logging

from pydantic import ValidationError

from resume_reviewer.app.models.resume import (
    RECORD_KEY_PREFIX,
    ResumeRecord,
    record_key,
)
from resume_reviewer.app.pipeline.errors import CorruptRecord, RecordStoreFailed
from resume_reviewer.app.storage.kv_store import KeyValueStore

log = logging.getLogger(__name__)


class RecordStore:
    """Reads and writes `ResumeRecord`s as JSON under `resume:{id}` keys.

    The wrapped key-value store is synchronous; every call runs in a worker
    thread so the pipeline yields while the store is busy.
    """

    def __init__(self, kv_store: KeyValueStore):
        self._kv_store = kv_store

    async def get(self, record_id: str) -> ResumeRecord | None:
        """Load a record by id.

        Args:
            record_id (str): The record id.

        Returns:
            ResumeRecord | None: The record, or None when no record is stored under the id.

        Raises:
            CorruptRecord: If the stored value is not a valid record.

        """
        raw = await asyncio.to_thread(self._kv_store.get, record_key(record_id))
        if raw is None:
            return None
        return self._decode(record_id, raw)

    async def save(self, record: ResumeRecord) -> None:
        """Persist a record under its key, replacing any previous value.

        Raises:
            RecordStoreFailed: If the underlying store rejects the write.

        """
        _msg = f"Saving resume record {record.id} (pending={record.is_pending})"
        log.debug(_msg)
        try:
            await asyncio.to_thread(self._kv_store.set, record.key, record.to_json())
        except Exception as e:
            _msg = f"Saving resume record {record.id} failed: {e!s}"
            log.exception(_msg)
            raise RecordStoreFailed() from e

    async def list_records(self) -> list[ResumeRecord]:
        """Load every stored record.

        Returns:
            list[ResumeRecord]: All readable records in key order.

        Notes:
            1. List the keys under the `resume:` prefix.
            2. Load each one; unreadable or vanished entries are logged and skipped.

        """
        keys = await asyncio.to_thread(self._kv_store.list_keys, RECORD_KEY_PREFIX)
        records = []
        for key in keys:
            record_id = key.removeprefix(RECORD_KEY_PREFIX)
            try:
                record = await self.get(record_id)
            except CorruptRecord:
                _msg = f"Skipping unreadable resume record {record_id}"
                log.warning(_msg)
                continue
            if record is not None:
                records.append(record)
        return records

    @staticmethod
    def _decode(record_id: str, raw: str) -> ResumeRecord:
        try:
            return ResumeRecord.model_validate_json(raw)
        except ValidationError as e:
            _msg = f"Stored resume record {record_id} failed validation: {e}"
            log.exception(_msg)
            raise CorruptRecord() from e
