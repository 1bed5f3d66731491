"""
Domain layer - Pure business logic with zero framework imports.

This package contains the registration pipeline, its immutable
configuration, and the port interfaces it requires from the record store,
ensuring true hexagonal architecture decoupling.
"""

from .config import RegistrationConfig
from .defaults import resolve_defaults
from .exceptions import (
    BadRequest,
    ConfigurationError,
    Conflict,
    InternalError,
    InvalidInput,
    RegistrationError,
    StoreError,
)
from .hooks import HookResult, Keep, Replace
from .ports import RecordStore, RequestContext, StoredRecord, StoreSession
from .registration import RegistrationService, identity_view

__all__ = [
    "BadRequest",
    "ConfigurationError",
    "Conflict",
    "HookResult",
    "InternalError",
    "InvalidInput",
    "Keep",
    "RecordStore",
    "RegistrationConfig",
    "RegistrationError",
    "RegistrationService",
    "Replace",
    "RequestContext",
    "StoreError",
    "StoreSession",
    "StoredRecord",
    "identity_view",
    "resolve_defaults",
]
