"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, the registration resource and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.postgres import (
    PostgresRecordStore,
    ensure_unique_indexes,
    run_migrations,
)
from src.api.errors import install_error_handlers
from src.api.v1 import build_router
from src.config.settings import Settings, get_settings
from src.domain.config import RegistrationConfig
from src.domain.defaults import DefaultSource
from src.domain.ports import RecordStore, UserView
from src.domain.registration import identity_view

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "registration",
        "description": "Pluggable registration resource - create user accounts",
    },
]


def registration_config_from_settings(
    settings: Settings,
    *,
    user_view: UserView | None = identity_view,
    default_values: DefaultSource = None,
    on_validation: Callable[..., Any] | None = None,
    before_registration: Callable[..., Any] | None = None,
    on_registration: Callable[..., Any] | None = None,
) -> RegistrationConfig:
    """
    Build the registration configuration from settings plus code-level hooks.

    ``default_values`` replaces the settings' static defaults when given,
    since callables cannot come from the environment.
    """
    return RegistrationConfig(
        pg=settings.database_url,
        user_view=user_view,
        user_type=settings.user_type,
        user_keys=tuple(settings.user_keys),
        unique_keys=tuple(settings.unique_keys),
        lowercase_keys=tuple(settings.lowercase_keys) if settings.lowercase_keys is not None else None,
        secret_field=settings.secret_field,
        path=settings.registration_path,
        profile_path=settings.profile_path,
        default_values=default_values if default_values is not None else settings.default_values,
        on_validation=on_validation,
        before_registration=before_registration,
        on_registration=on_registration,
        bcrypt_rounds=settings.bcrypt_cost,
    )


def create_app(
    settings: Settings | None = None,
    *,
    user_view: UserView | None = identity_view,
    default_values: DefaultSource = None,
    on_validation: Callable[..., Any] | None = None,
    before_registration: Callable[..., Any] | None = None,
    on_registration: Callable[..., Any] | None = None,
    store: RecordStore | None = None,
) -> FastAPI:
    """
    Create the FastAPI application with the registration resource mounted.

    Configuration errors raise ConfigurationError here, before serving.
    When ``store`` is given it is used as-is and the lifespan does not
    open a database pool.
    """
    settings = settings or get_settings()
    config = registration_config_from_settings(
        settings,
        user_view=user_view,
        default_values=default_values,
        on_validation=on_validation,
        before_registration=before_registration,
        on_registration=on_registration,
    )
    logging.getLogger("src").setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Manages application startup and shutdown:
        - Creates database connection pool on startup
        - Runs migrations (and strict unique indexes) on startup
        - Closes connection pool on shutdown
        """
        if store is not None:
            yield
            return

        logger.info("Starting application...")
        logger.info("Connecting to database...")

        # Create connection pool with explicit sizing
        pool = AsyncConnectionPool(
            conninfo=config.pg,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=False,
        )
        await pool.open()

        logger.info("Running database migrations...")
        await run_migrations(pool)

        unique_indexes: dict[str, str] = {}
        if settings.strict_unique:
            unique_indexes = await ensure_unique_indexes(pool, config.user_type, config.unique_keys)

        # Store in app state for dependency injection
        app.state.store = PostgresRecordStore(pool, unique_indexes=unique_indexes)

        logger.info("Application startup complete")

        yield

        # Shutdown
        logger.info("Shutting down application...")
        await pool.close()
        logger.info("Database connection pool closed")

    app = FastAPI(
        title="registration",
        description="Pluggable registration resource - validates, de-duplicates and stores new users",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.registration_config = config
    if store is not None:
        app.state.store = store

    install_error_handlers(app)
    app.include_router(build_router(config))

    @app.get("/health")
    async def health_check(request: Request) -> dict[str, str]:
        """
        Health check endpoint with store validation.

        Returns 200 OK if application and store are healthy.
        Responds 503 (StoreError) if the store is unreachable.
        """
        await request.app.state.store.ping()
        return {"status": "healthy"}

    return app


app = create_app()
