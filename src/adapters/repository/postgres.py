"""
PostgreSQL record store adapter - Implements RecordStore protocol.

This module provides the PostgreSQL implementation of the domain's
record store port using psycopg3 (async) with raw SQL.

Storage Layout
--------------
Records are JSON documents in a single table, keyed by type:

    records(id UUID, type TEXT, content JSONB, created TIMESTAMPTZ)

Lookups compare each field for JSON equality (``content -> 'email' = '"..."'``)
within one type, narrowed by the index on ``type``.

Sessions
--------
Each session checks one connection out of the pool and keeps it for the
whole transaction. commit() and rollback() always return the connection,
so a session can never be reused.

Strict Mode
-----------
ensure_unique_indexes() creates partial unique expression indexes
(``records_<type>_<key>_unique``) so concurrent registrations that both pass
the uniqueness search are still rejected by the database. The violation is
reported as Conflict for the offending key.
"""

import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg import sql
from psycopg.errors import UniqueViolation
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from src.domain.exceptions import Conflict, StoreError
from src.domain.ports import StoredRecord

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = "id, type, content, created"


def _to_record(row: Mapping[str, Any]) -> StoredRecord:
    return StoredRecord(
        id=row["id"],
        type=row["type"],
        content=dict(row["content"]),
        created=row["created"],
    )


def unique_index_name(record_type: str, key: str) -> str:
    """Name of the strict-mode unique index for a type/key pair."""
    return f"records_{record_type}_{key}_unique".lower()


class PostgresRecordStore:
    """
    Implements RecordStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(
        self, pool: AsyncConnectionPool, unique_indexes: Mapping[str, str] | None = None
    ) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 AsyncConnectionPool for database connections
            unique_indexes: Strict-mode index name -> field name, used to
                tag Conflict errors raised by the database
        """
        self._pool = pool
        self._unique_indexes = dict(unique_indexes or {})

    async def begin(self) -> "PostgresSession":
        try:
            conn = await self._pool.getconn()
        except psycopg.Error as e:
            logger.error(f"Could not open store session: {e}")
            raise StoreError("Could not open store session") from e
        return PostgresSession(self._pool, conn, self._unique_indexes)

    async def ping(self) -> None:
        try:
            async with self._pool.connection() as conn:
                await conn.execute("SELECT 1")
        except psycopg.Error as e:
            raise StoreError("Store is unreachable") from e


class PostgresSession:
    """One pooled connection holding one open transaction."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        conn: psycopg.AsyncConnection,
        unique_indexes: Mapping[str, str],
    ) -> None:
        self._pool = pool
        self._conn: psycopg.AsyncConnection | None = conn
        self._unique_indexes = unique_indexes

    @property
    def closed(self) -> bool:
        return self._conn is None

    async def search_single(
        self, record_type: str, where: Mapping[str, Any]
    ) -> StoredRecord | None:
        conditions = [sql.SQL("type = %s")]
        params: list[Any] = [record_type]
        for key, value in where.items():
            # JSON equality, not containment: [] must not match ["x"]
            conditions.append(sql.SQL("content -> %s::text = %s::jsonb"))
            params.extend([key, Jsonb(value)])

        query = sql.SQL(
            "SELECT {columns} FROM records WHERE {conditions} ORDER BY created LIMIT 1"
        ).format(
            columns=sql.SQL(_SELECT_COLUMNS),
            conditions=sql.SQL(" AND ").join(conditions),
        )
        conn = self._connection()
        async with self._translate_errors("search"):
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, params)
                row = await cursor.fetchone()
        return _to_record(row) if row is not None else None

    async def create(self, record_type: str, content: Mapping[str, Any]) -> StoredRecord:
        query = f"""
            INSERT INTO records (type, content)
            VALUES (%s, %s)
            RETURNING {_SELECT_COLUMNS}
        """
        conn = self._connection()
        async with self._translate_errors("create"):
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(query, (record_type, Jsonb(dict(content))))
                row = await cursor.fetchone()
        return _to_record(row)

    async def commit(self) -> None:
        conn = self._connection()
        try:
            async with self._translate_errors("commit"):
                await conn.commit()
        finally:
            await self._release()

    async def rollback(self) -> None:
        conn = self._connection()
        try:
            async with self._translate_errors("rollback"):
                await conn.rollback()
        finally:
            await self._release()

    def _connection(self) -> psycopg.AsyncConnection:
        if self._conn is None:
            raise StoreError("Session is closed")
        return self._conn

    async def _release(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            # The pool rolls back anything left open before reusing the connection
            await self._pool.putconn(conn)

    @asynccontextmanager
    async def _translate_errors(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except UniqueViolation as e:
            constraint = e.diag.constraint_name or ""
            key = self._unique_indexes.get(constraint, constraint or "record")
            logger.info(f"Unique constraint {constraint} rejected {action}")
            raise Conflict(key) from e
        except psycopg.Error as e:
            logger.error(f"Store {action} failed: {e}")
            raise StoreError(f"Store {action} failed") from e


async def ensure_unique_indexes(
    pool: AsyncConnectionPool, record_type: str, keys: Iterable[str]
) -> dict[str, str]:
    """
    Create strict-mode unique indexes for ``keys`` of ``record_type``.

    Indexes are partial (one record type) and idempotent (IF NOT EXISTS).

    Returns:
        Mapping of index name -> field name, for PostgresRecordStore
    """
    indexes: dict[str, str] = {}
    async with pool.connection() as conn:
        for key in keys:
            name = unique_index_name(record_type, key)
            statement = sql.SQL(
                "CREATE UNIQUE INDEX IF NOT EXISTS {name} ON records ((content ->> {key})) "
                "WHERE type = {record_type}"
            ).format(
                name=sql.Identifier(name),
                key=sql.Literal(key),
                record_type=sql.Literal(record_type),
            )
            logger.info(f"Ensuring unique index {name}")
            await conn.execute(statement)
            indexes[name] = key
    return indexes


async def run_migrations(pool: AsyncConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 AsyncConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            async with pool.connection() as conn:
                await conn.execute(sql_content)
                # pool.connection() commits on clean exit

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
