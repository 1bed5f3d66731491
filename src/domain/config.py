"""
Registration configuration - immutable settings for one registration resource.

Built once by the mounting application and validated on construction, so a
misconfigured resource fails at startup instead of on the first request.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .defaults import DefaultSource
from .exceptions import ConfigurationError
from .ports import UserView

Hook = Callable[..., Any]

_HOOKS = ("on_validation", "before_registration", "on_registration")


@dataclass(frozen=True, kw_only=True)
class RegistrationConfig:
    """
    Settings for the registration pipeline.

    Attributes:
        pg: Store connection descriptor (required)
        user_view: View projection capability (required)
        user_type: Record type created for new users
        user_keys: Fields accepted from the request body, in order
        unique_keys: Fields that must not collide with a stored record
        lowercase_keys: Fields lowercased before matching; defaults to unique_keys
        secret_field: Field hashed with bcrypt and never returned
        path: Registration resource path, relative to the API root
        profile_path: Profile resource path referenced by the response
        default_values: Static mapping, function, or mapping of functions
        on_validation: Called with the record before any store access
        before_registration: Called with the view before commit
        on_registration: Called with the result after commit
        bcrypt_rounds: bcrypt work factor
    """

    pg: str
    user_view: UserView
    user_type: str = "User"
    user_keys: tuple[str, ...] = ("email", "password")
    unique_keys: tuple[str, ...] = ("email",)
    lowercase_keys: tuple[str, ...] | None = None
    secret_field: str = "password"
    path: str = "api/registration"
    profile_path: str = "api/profile"
    default_values: DefaultSource = None
    on_validation: Hook | None = None
    before_registration: Hook | None = None
    on_registration: Hook | None = None
    bcrypt_rounds: int = 10

    def __post_init__(self) -> None:
        for name in ("pg", "user_type", "secret_field", "path", "profile_path"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(f"{name} must be a non-empty string")

        if not callable(self.user_view):
            raise ConfigurationError("user_view must be callable")

        for name in _HOOKS:
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                raise ConfigurationError(f"{name} must be callable or None")

        user_keys = _key_tuple("user_keys", self.user_keys)
        unique_keys = _key_tuple("unique_keys", self.unique_keys)
        if self.lowercase_keys is None:
            lowercase_keys = unique_keys
        else:
            lowercase_keys = _key_tuple("lowercase_keys", self.lowercase_keys)

        # frozen dataclass: normalize fields through object.__setattr__
        object.__setattr__(self, "user_keys", user_keys)
        object.__setattr__(self, "unique_keys", unique_keys)
        object.__setattr__(self, "lowercase_keys", lowercase_keys)

        defaults = self.default_values
        if isinstance(defaults, Mapping):
            object.__setattr__(self, "default_values", MappingProxyType(dict(defaults)))
        elif defaults is not None and not callable(defaults):
            raise ConfigurationError("default_values must be a mapping, a callable or None")

        if isinstance(self.bcrypt_rounds, bool) or not isinstance(self.bcrypt_rounds, int):
            raise ConfigurationError("bcrypt_rounds must be an integer")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ConfigurationError("bcrypt_rounds must be between 4 and 31")


def _key_tuple(name: str, keys: Iterable[str]) -> tuple[str, ...]:
    """Freeze a key list into a de-duplicated tuple, preserving order."""
    if isinstance(keys, str) or not isinstance(keys, Iterable):
        raise ConfigurationError(f"{name} must be a list of field names")
    result: list[str] = []
    for key in keys:
        if not isinstance(key, str) or not key:
            raise ConfigurationError(f"{name} must contain non-empty strings")
        if key not in result:
            result.append(key)
    return tuple(result)
