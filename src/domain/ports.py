"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID


@dataclass(frozen=True)
class StoredRecord:
    """
    A record persisted by the backing store.

    The store assigns ``id`` and ``created``; ``content`` holds the
    registration fields exactly as they were submitted for creation.
    """

    id: UUID
    type: str
    content: dict[str, Any]
    created: datetime

    def snapshot(self) -> dict[str, Any]:
        """Plain dict of the record: store metadata plus content fields."""
        data: dict[str, Any] = {
            "$id": str(self.id),
            "$type": self.type,
            "$created": self.created.isoformat(),
        }
        data.update(self.content)
        return data


@dataclass(frozen=True)
class RequestContext:
    """Per-request data handed to views and hooks."""

    base_url: str
    request: Any = None

    def ref(self, path: str) -> str:
        """Absolute URL for a path relative to the API root."""
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")


class StoreSession(Protocol):
    """
    Port interface for one request-scoped store transaction.

    Nothing is visible to other sessions until commit(). A session is
    unusable after commit() or rollback().
    """

    async def search_single(
        self, record_type: str, where: Mapping[str, Any]
    ) -> StoredRecord | None:
        """
        Find one record of the given type whose fields equal ``where``.

        Returns:
            The first matching record, or None
        """
        ...

    async def create(self, record_type: str, content: Mapping[str, Any]) -> StoredRecord:
        """
        Stage a new record inside the session.

        Raises:
            Conflict: If a store-level unique constraint rejects the record
            StoreError: On any other store failure
        """
        ...

    async def commit(self) -> None:
        """Make the session's records durable and release the session."""
        ...

    async def rollback(self) -> None:
        """Discard the session's records and release the session."""
        ...


class RecordStore(Protocol):
    """Port interface for registration persistence."""

    async def begin(self) -> StoreSession:
        """
        Open a new transactional session.

        Raises:
            StoreError: If no session can be opened
        """
        ...

    async def ping(self) -> None:
        """Raise StoreError if the store is unreachable."""
        ...


# (snapshot, context) -> view mapping, sync or async
UserView = Callable[[dict[str, Any], RequestContext], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]
