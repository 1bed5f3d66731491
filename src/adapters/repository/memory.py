"""
In-memory record store adapter - Implements RecordStore protocol.

Keeps records in a dict for tests and local development. Records created
in a session are staged and only visible to that session until commit,
mirroring a database transaction. Optional unique constraints are checked
at commit time, like a store-level unique index.
"""

import asyncio
import copy
import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from src.domain.exceptions import Conflict, StoreError
from src.domain.ports import StoredRecord

logger = logging.getLogger(__name__)

_MISSING = object()


def _matches(record: StoredRecord, record_type: str, where: Mapping[str, Any]) -> bool:
    if record.type != record_type:
        return False
    return all(record.content.get(key, _MISSING) == value for key, value in where.items())


class InMemoryRecordStore:
    """
    Implements RecordStore protocol with a process-local dict.

    Uses structural subtyping - no explicit inheritance from Protocol.

    Args:
        unique_keys: Optional mapping of record type -> fields that must be
            unique among committed records of that type (strict mode)
    """

    def __init__(self, unique_keys: Mapping[str, Iterable[str]] | None = None) -> None:
        self._records: dict[UUID, StoredRecord] = {}
        self._unique_keys = {
            record_type: tuple(keys) for record_type, keys in (unique_keys or {}).items()
        }
        self._lock = asyncio.Lock()

    async def begin(self) -> "InMemorySession":
        return InMemorySession(self)

    async def ping(self) -> None:
        return None

    def records(self, record_type: str | None = None) -> list[StoredRecord]:
        """Committed records, optionally filtered by type, in creation order."""
        return [r for r in self._records.values() if record_type is None or r.type == record_type]

    def count(self, record_type: str | None = None) -> int:
        return len(self.records(record_type))

    def search(self, record_type: str, where: Mapping[str, Any]) -> StoredRecord | None:
        for record in self._records.values():
            if _matches(record, record_type, where):
                return record
        return None

    async def _commit(self, pending: list[StoredRecord]) -> None:
        async with self._lock:
            for record in pending:
                self._check_unique(record, pending)
            for record in pending:
                self._records[record.id] = record

    def _check_unique(self, record: StoredRecord, pending: list[StoredRecord]) -> None:
        for key in self._unique_keys.get(record.type, ()):
            if key not in record.content:
                continue
            where = {key: record.content[key]}
            others = [r for r in pending if r is not record]
            if self.search(record.type, where) is not None or any(
                _matches(r, record.type, where) for r in others
            ):
                logger.info("Unique constraint violated on %s.%s", record.type, key)
                raise Conflict(key)


class InMemorySession:
    """Request-scoped session over an InMemoryRecordStore."""

    def __init__(self, store: InMemoryRecordStore) -> None:
        self._store = store
        self._pending: list[StoredRecord] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def search_single(
        self, record_type: str, where: Mapping[str, Any]
    ) -> StoredRecord | None:
        self._ensure_open()
        for record in self._pending:
            if _matches(record, record_type, where):
                return record
        return self._store.search(record_type, where)

    async def create(self, record_type: str, content: Mapping[str, Any]) -> StoredRecord:
        self._ensure_open()
        record = StoredRecord(
            id=uuid4(),
            type=record_type,
            content=copy.deepcopy(dict(content)),
            created=datetime.now(UTC),
        )
        self._pending.append(record)
        return record

    async def commit(self) -> None:
        self._ensure_open()
        self._closed = True
        pending, self._pending = self._pending, []
        await self._store._commit(pending)

    async def rollback(self) -> None:
        self._ensure_open()
        self._closed = True
        self._pending = []

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreError("Session is closed")
