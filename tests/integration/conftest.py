"""
Shared fixtures for integration tests.

Integration tests run against the PostgreSQL database configured by
DATABASE_URL. They are skipped when the database is unreachable.
"""

from collections.abc import Generator
from pathlib import Path

import psycopg
import pytest

from src.config.settings import get_settings

MIGRATIONS_DIR = Path(__file__).parent.parent.parent / "migrations"


@pytest.fixture(scope="session")
def database_url() -> str:
    """Database URL with migrations applied, or skip the test."""
    url = get_settings().database_url
    try:
        with psycopg.connect(url, connect_timeout=2) as conn:
            for sql_file in sorted(MIGRATIONS_DIR.glob("*.sql")):
                conn.execute(sql_file.read_text())
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")
    return url


@pytest.fixture
def db(database_url: str) -> Generator[psycopg.Connection, None, None]:
    """Autocommit connection for inspecting the records table."""
    with psycopg.connect(database_url, autocommit=True) as conn:
        yield conn


@pytest.fixture
def clean_database(db: psycopg.Connection) -> Generator[None, None, None]:
    """Clean records table before each test."""
    db.execute("DELETE FROM records")
    yield
