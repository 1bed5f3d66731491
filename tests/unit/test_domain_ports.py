"""
Unit tests for domain ports and exceptions.

Tests verify:
- Value types exposed by the ports are properly defined
- Exceptions are properly structured
- Domain purity (zero framework imports)
"""

import subprocess
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from src.domain.exceptions import (
    BadRequest,
    ConfigurationError,
    Conflict,
    InternalError,
    InvalidInput,
    RegistrationError,
    StoreError,
)
from src.domain.ports import RequestContext, StoredRecord


class TestStoredRecord:
    """Tests for StoredRecord snapshots."""

    def test_snapshot_has_metadata_and_content(self) -> None:
        record_id = uuid4()
        created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        record = StoredRecord(id=record_id, type="User", content={"email": "a@b.com"}, created=created)

        assert record.snapshot() == {
            "$id": str(record_id),
            "$type": "User",
            "$created": "2024-01-02T03:04:05+00:00",
            "email": "a@b.com",
        }

    def test_snapshot_is_independent_dict(self) -> None:
        record = StoredRecord(id=uuid4(), type="User", content={"email": "a@b.com"}, created=datetime.now(UTC))
        snapshot = record.snapshot()
        snapshot["email"] = "changed"
        assert record.content["email"] == "a@b.com"


class TestRequestContext:
    """Tests for $ref construction."""

    @pytest.mark.parametrize(
        ("base_url", "path", "expected"),
        [
            ("http://host/", "api/profile", "http://host/api/profile"),
            ("http://host", "api/profile", "http://host/api/profile"),
            ("http://host/", "/api/profile", "http://host/api/profile"),
            ("https://host/root/", "api/registration", "https://host/root/api/registration"),
        ],
    )
    def test_ref_joins_base_url_and_path(self, base_url: str, path: str, expected: str) -> None:
        assert RequestContext(base_url=base_url).ref(path) == expected


class TestDomainExceptions:
    """Tests for domain exceptions."""

    @pytest.mark.parametrize("cls", [BadRequest, InvalidInput, Conflict, StoreError, InternalError])
    def test_kinds_inherit_registration_error(self, cls: type) -> None:
        assert issubclass(cls, RegistrationError)

    def test_registration_error_is_exception(self) -> None:
        assert issubclass(RegistrationError, Exception)

    def test_kind_is_class_name(self) -> None:
        assert StoreError("down").kind == "StoreError"
        assert InvalidInput("missing-password").kind == "InvalidInput"

    def test_conflict_tagged_with_key(self) -> None:
        error = Conflict("email")
        assert error.key == "email"
        assert str(error) == "reserved-email"
        assert error.kind == "Conflict"

    def test_configuration_error_is_not_a_request_error(self) -> None:
        assert not issubclass(ConfigurationError, RegistrationError)


class TestDomainPurity:
    """Tests for domain purity - zero framework imports."""

    @pytest.mark.parametrize(
        "pattern",
        ["from fastapi", "import fastapi", "from pydantic", "import pydantic", "from psycopg", "import psycopg"],
    )
    def test_no_framework_imports_in_domain(self, pattern: str) -> None:
        """Domain layer has no web, settings or database framework imports."""
        result = subprocess.run(
            ["grep", "-r", pattern, "src/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"{pattern} found: {result.stdout}"
