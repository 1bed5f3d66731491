"""
Shared fixtures for adversarial tests.

Provides a registration service whose pre-commit hook yields to the event
loop, so concurrent registrations interleave between the uniqueness
search and the commit.
"""

import asyncio
from collections.abc import Callable

import pytest

from src.adapters.repository.memory import InMemoryRecordStore
from src.domain.config import RegistrationConfig
from src.domain.hooks import Keep
from src.domain.ports import RequestContext
from src.domain.registration import RegistrationService, identity_view

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


async def slow_before_registration(view: dict, context: RequestContext) -> Keep:
    """Suspend between create and commit, widening the race window."""
    await asyncio.sleep(0.1)
    return Keep()


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(base_url="http://testserver/")


@pytest.fixture
def make_racy_service() -> Callable[[InMemoryRecordStore], RegistrationService]:
    """Factory for services that interleave at the pre-commit hook."""

    def factory(store: InMemoryRecordStore) -> RegistrationService:
        config = RegistrationConfig(
            pg="memory://",
            user_view=identity_view,
            before_registration=slow_before_registration,
            bcrypt_rounds=4,
        )
        return RegistrationService(config=config, store=store)

    return factory
