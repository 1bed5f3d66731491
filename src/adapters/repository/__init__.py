"""Repository adapters - Record store implementations."""

from .memory import InMemoryRecordStore
from .postgres import PostgresRecordStore, ensure_unique_indexes, run_migrations

__all__ = ["InMemoryRecordStore", "PostgresRecordStore", "ensure_unique_indexes", "run_migrations"]
