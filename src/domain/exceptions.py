"""
Domain exceptions - Semantic error types for registration.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The API layer maps each kind to an HTTP status code.
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    @property
    def kind(self) -> str:
        """Error kind reported to clients (the class name)."""
        return type(self).__name__


class BadRequest(RegistrationError):
    """Request body is malformed or not a key/value mapping."""

    pass


class InvalidInput(RegistrationError):
    """A required field is missing or has the wrong shape after defaulting."""

    pass


class Conflict(RegistrationError):
    """A unique-key value is already taken by a stored record."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"reserved-{key}")


class StoreError(RegistrationError):
    """Transactional session failure not attributable to a uniqueness conflict."""

    pass


class InternalError(RegistrationError):
    """View delegate misbehaved or a hook failed unexpectedly."""

    pass


class ConfigurationError(ValueError):
    """Registration configuration is incomplete or malformed."""

    pass
