"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
the registration service and request context into routes.
"""

from fastapi import Request

from src.domain.config import RegistrationConfig
from src.domain.ports import RecordStore, RequestContext
from src.domain.registration import RegistrationService


def get_store(request: Request) -> RecordStore:
    """
    Get record store from app state.

    The store is created during app lifespan startup (or injected into
    create_app) and stored in app.state.
    """
    return request.app.state.store


def get_registration_config(request: Request) -> RegistrationConfig:
    """Get the immutable registration configuration from app state."""
    return request.app.state.registration_config


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the configuration and record store for the domain service.
    """
    return RegistrationService(
        config=get_registration_config(request),
        store=get_store(request),
    )


def get_request_context(request: Request) -> RequestContext:
    """Build the per-request context used for $ref links and hooks."""
    return RequestContext(base_url=str(request.base_url), request=request)
