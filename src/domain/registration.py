"""
Registration domain service - the new-account pipeline.

This module contains the core business logic for user registration.
Each request runs the stages below strictly in order; any stage may abort
the request by raising a RegistrationError.

Pipeline
========

    1. extract      keep only the configured user_keys from the body
    2. normalize    lowercase the configured lowercase_keys
    3. defaults     fill absent keys from default_values
    4. hash         unique keys must be present; bcrypt the secret field
    5. validate     on_validation hook (no store access yet)
    6. uniqueness   open a session, search each unique key in order
    7. create       stage the new record in the same session
    8. project      user_view, strip the secret, attach the profile $ref
    9. pre-commit   before_registration hook (Keep / Replace)
   10. commit       the record becomes durable
   11. post-commit  on_registration hook (Keep / Replace)

Transaction Rules
=================

- Failures before step 6 need no cleanup.
- Failures in steps 6 to 9 roll the session back before propagating.
- Failures in step 11 never roll back: the record stays committed and only
  the response is affected.

Note: uniqueness is check-then-act. Two concurrent requests for the same
value can both pass step 6; only a store-level unique constraint (strict
mode) catches the second one, as a Conflict on create or commit.
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any
from uuid import UUID

import bcrypt

from .config import RegistrationConfig
from .defaults import resolve_defaults
from .exceptions import BadRequest, Conflict, InternalError, InvalidInput
from .hooks import apply_hook_result, call_hook
from .ports import RecordStore, RequestContext, StoredRecord, StoreSession

logger = logging.getLogger(__name__)


def identity_view(record: dict[str, Any], context: RequestContext) -> dict[str, Any]:
    """Default view: expose the stored record as-is (the secret is stripped later)."""
    return record


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the registration pipeline against a record store
    using the immutable configuration of the mounted resource.
    """

    config: RegistrationConfig
    store: RecordStore

    async def register(self, body: Any, context: RequestContext) -> Any:
        """
        Register a new user from a parsed request body.

        Args:
            body: Parsed request body (must be a mapping)
            context: Request context used to build $ref links

        Returns:
            Public view of the new record, or the value a hook replaced it with

        Raises:
            BadRequest: If body is not a mapping
            InvalidInput: If the secret or a unique key is missing
            Conflict: If a unique key value is already registered
            StoreError: On transactional session failure
            InternalError: If the view or a hook misbehaves
        """
        record = self.extract_params(body)
        self.normalize(record)
        await resolve_defaults(self.config.default_values, record)
        self._require_unique_values(record)
        await self.hash_secret(record)
        await self._validate(record)

        session = await self.store.begin()
        try:
            await self._enforce_unique(session, record)
            stored = await session.create(self.config.user_type, record)
            view = await self.project(stored, context)
            result = await self._before_registration(view, context)
        except BaseException:
            await self._rollback(session)
            raise

        await session.commit()
        logger.info("Registered %s %s", self.config.user_type, stored.id)

        return await self._on_registration(result, context)

    def extract_params(self, body: Any) -> dict[str, Any]:
        """Copy the accepted user_keys present in ``body`` into a new record."""
        if not isinstance(body, Mapping):
            raise BadRequest("Request body must be a JSON object")
        return {key: body[key] for key in self.config.user_keys if key in body}

    def normalize(self, record: dict[str, Any]) -> None:
        """Lowercase string values of the configured lowercase_keys in place."""
        for key in self.config.lowercase_keys:
            value = record.get(key)
            if isinstance(value, str):
                record[key] = value.lower()

    async def hash_secret(self, record: dict[str, Any]) -> None:
        """
        Replace the plaintext secret with its bcrypt hash.

        Hashing runs in a worker thread; bcrypt is deliberately slow and
        would otherwise stall every other request on the event loop.
        """
        field = self.config.secret_field
        plaintext = record.get(field)
        if not isinstance(plaintext, str):
            raise InvalidInput(f"missing-{field}")
        try:
            record[field] = await asyncio.to_thread(self._hash_password, plaintext)
        except ValueError as e:
            # bcrypt refuses secrets longer than 72 bytes
            raise InvalidInput(f"invalid-{field}") from e

    async def project(self, stored: StoredRecord, context: RequestContext) -> dict[str, Any]:
        """
        Build the public view of a stored record.

        The secret field is always removed and $ref always points at the
        profile resource, whatever the configured view returns.
        """
        view = await call_hook("user_view", self.config.user_view, stored.snapshot(), context)
        if not isinstance(view, Mapping):
            raise InternalError(f"user_view must return a mapping, got {type(view).__name__}")
        view = dict(view)
        view.pop(self.config.secret_field, None)
        view["$ref"] = context.ref(self.config.profile_path)
        return view

    def _require_unique_values(self, record: dict[str, Any]) -> None:
        for key in self.config.unique_keys:
            if record.get(key) is None:
                raise InvalidInput(f"missing-{key}")

    async def _validate(self, record: dict[str, Any]) -> None:
        if self.config.on_validation is not None:
            await call_hook("on_validation", self.config.on_validation, MappingProxyType(record))

    async def _enforce_unique(self, session: StoreSession, record: dict[str, Any]) -> None:
        # Sequential: every search shares the one session
        for key in self.config.unique_keys:
            existing = await session.search_single(self.config.user_type, {key: record[key]})
            if existing is not None and isinstance(existing.id, UUID):
                logger.info("Registration rejected: %s already reserved", key)
                raise Conflict(key)

    async def _before_registration(self, view: dict[str, Any], context: RequestContext) -> Any:
        hook = self.config.before_registration
        if hook is None:
            return view
        result = await call_hook("before_registration", hook, view, context)
        return apply_hook_result("before_registration", result, view)

    async def _on_registration(self, body: Any, context: RequestContext) -> Any:
        hook = self.config.on_registration
        if hook is None:
            return body
        try:
            result = await call_hook("on_registration", hook, body, context)
            return apply_hook_result("on_registration", result, body)
        except Exception:
            logger.warning("on_registration failed after commit; the record stays registered")
            raise

    async def _rollback(self, session: StoreSession) -> None:
        logger.debug("Rolling back registration session")
        try:
            await session.rollback()
        except Exception:
            # Keep the original error; the failed rollback is only reported
            logger.exception("Rollback failed")

    def _hash_password(self, password: str) -> str:
        """Hash password using bcrypt with a fresh salt."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.config.bcrypt_rounds)).decode()
