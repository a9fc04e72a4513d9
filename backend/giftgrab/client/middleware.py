# Overview: Shared middleware for state containers (logging, validation, persistence).

from __future__ import annotations

import json
import logging
from dataclasses import fields
from typing import Any, Callable

from ..fp import Result, Success
from .container import FunctionalState
from .storage import ClientStore

logger = logging.getLogger("giftgrab.client")

# Bookkeeping fields never written to the client store
DEFAULT_PERSIST_EXCLUDE = ("loading", "error", "last_updated", "version")


class LoggingMiddleware:
    """Logs every action before it runs and the version it produced."""

    def __init__(self, name: str, log: logging.Logger | None = None):
        self.name = name
        self.log = log or logger

    def __call__(self, action: Any, state: FunctionalState) -> Result[bool, str]:
        self.log.debug("[%s] Action: %r (version %d)", self.name, action, state.version)
        return Success(True)

    def on_committed(self, action: Any, new_state: FunctionalState) -> None:
        self.log.debug("[%s] %s -> version %d", self.name, type(action).__name__, new_state.version)


class ValidationMiddleware:
    """Wraps a slice validator (action, state) -> Result[bool, str]."""

    def __init__(self, validator: Callable[[Any, FunctionalState], Result[bool, str]]):
        self.validator = validator

    def __call__(self, action: Any, state: FunctionalState) -> Result[bool, str]:
        return self.validator(action, state)


def persistable(state: FunctionalState, exclude=DEFAULT_PERSIST_EXCLUDE) -> dict:
    """The part of state that survives a reload, as plain JSON-able values."""
    out = {}
    for f in fields(state):
        if f.name in exclude:
            continue
        value = getattr(state, f.name)
        out[f.name] = value.to_dict() if hasattr(value, "to_dict") else value
    return out


class PersistenceMiddleware:
    """
    Writes the committed state to a ClientStore under key.

    Never blocks: store errors are logged and the dispatch still succeeds.
    """

    def __init__(self, key: str, storage: ClientStore, exclude=DEFAULT_PERSIST_EXCLUDE):
        self.key = key
        self.storage = storage
        self.exclude = tuple(exclude)

    def __call__(self, action: Any, state: FunctionalState) -> Result[bool, str]:
        return Success(True)

    def on_committed(self, action: Any, new_state: FunctionalState) -> None:
        try:
            self.storage.set(self.key, json.dumps(persistable(new_state, self.exclude)))
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to persist state for key %r: %s", self.key, e)

    def load(self) -> dict | None:
        """Previously persisted document, or None if absent or unreadable."""
        try:
            raw = self.storage.get(self.key)
        except OSError as e:
            logger.warning("Failed to read persisted state for key %r: %s", self.key, e)
            return None
        if not raw:
            return None
        try:
            document = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable persisted state for key %r", self.key)
            return None
        return document if isinstance(document, dict) else None
