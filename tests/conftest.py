"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory record store
- Registration configuration and service factories
- Request context
"""

from collections.abc import Callable
from typing import Any

import pytest

from src.adapters.repository.memory import InMemoryRecordStore
from src.domain.config import RegistrationConfig
from src.domain.ports import RequestContext
from src.domain.registration import RegistrationService, identity_view

# Lowest bcrypt work factor, keeps hashing fast in tests
FAST_ROUNDS = 4

BASE_URL = "http://testserver/"


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Empty in-memory store for each test."""
    return InMemoryRecordStore()


@pytest.fixture
def context() -> RequestContext:
    """Request context rooted at the test server."""
    return RequestContext(base_url=BASE_URL)


@pytest.fixture
def make_config() -> Callable[..., RegistrationConfig]:
    """Factory for registration configs with test-friendly defaults."""

    def factory(**overrides: Any) -> RegistrationConfig:
        options: dict[str, Any] = {
            "pg": "postgresql://test@localhost/test",
            "user_view": identity_view,
            "bcrypt_rounds": FAST_ROUNDS,
        }
        options.update(overrides)
        return RegistrationConfig(**options)

    return factory


@pytest.fixture
def make_service(
    make_config: Callable[..., RegistrationConfig], store: InMemoryRecordStore
) -> Callable[..., RegistrationService]:
    """Factory for services bound to the shared in-memory store."""

    def factory(**overrides: Any) -> RegistrationService:
        return RegistrationService(config=make_config(**overrides), store=store)

    return factory
