# Overview: Slice registry; the explicit store object flows receive instead of global state.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from ..fp import NOTHING, Maybe, Result, Some
from .container import FunctionalState, Reducer, StateContainer
from .middleware import LoggingMiddleware, PersistenceMiddleware, ValidationMiddleware
from .storage import ClientStore

logger = logging.getLogger("giftgrab.client")


@dataclass(frozen=True)
class SliceDefinition:
    """
    Everything needed to mount one slice.

    data_type must be a frozen dataclass constructible with no arguments and
    exposing to_dict() / from_dict() for persistence.
    """

    name: str
    data_type: type
    reducer: Reducer
    validator: Callable[[Any, FunctionalState], Result]


class SliceRegistry:
    """
    Holds the mounted containers for one client session.

    With a storage, every slice gets persistence middleware and is hydrated
    from the stored document on mount (stored data wins over initial data).
    """

    def __init__(self, storage: ClientStore | None = None, namespace: str = "giftgrab"):
        self.storage = storage
        self.namespace = namespace
        self._containers: dict[str, StateContainer] = {}
        self._definitions: dict[str, SliceDefinition] = {}

    def key_for(self, name: str) -> str:
        return f"{self.namespace}:{name}"

    def mount(
        self,
        definition: SliceDefinition,
        initial_data: Any = None,
        *,
        hydrate: bool = True,
    ) -> StateContainer:
        data = initial_data if initial_data is not None else definition.data_type()
        middleware: list = [
            LoggingMiddleware(definition.name),
            ValidationMiddleware(definition.validator),
        ]

        if self.storage is not None:
            persistence = PersistenceMiddleware(self.key_for(definition.name), self.storage)
            middleware.append(persistence)
            if hydrate:
                data = self._hydrate(definition, persistence, data)

        container = StateContainer(
            definition.name,
            FunctionalState(data=data),
            definition.reducer,
            middleware,
        )
        self._containers[definition.name] = container
        self._definitions[definition.name] = definition
        return container

    def _hydrate(self, definition: SliceDefinition, persistence: PersistenceMiddleware, fallback: Any) -> Any:
        document = persistence.load()
        if not document or "data" not in document:
            return fallback
        try:
            return definition.data_type.from_dict(document["data"])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring persisted %s state: %s", definition.name, e)
            return fallback

    def ensure(self, definition: SliceDefinition, initial_data: Any = None) -> StateContainer:
        """Mounted container for definition, mounting it first if needed."""
        existing = self._containers.get(definition.name)
        if existing is None:
            return self.mount(definition, initial_data)
        if self._definitions.get(definition.name) is not definition:
            logger.warning(
                "Slice %s is already mounted with a different definition; keeping the mounted one",
                definition.name,
            )
        return existing

    def unmount(self, name: str, *, forget: bool = False) -> None:
        self._containers.pop(name, None)
        self._definitions.pop(name, None)
        if forget and self.storage is not None:
            self.storage.remove(self.key_for(name))

    def is_mounted(self, name: str) -> bool:
        return name in self._containers

    def get(self, name: str) -> Maybe[StateContainer]:
        container = self._containers.get(name)
        return Some(container) if container is not None else NOTHING

    def select(self, name: str, selector: Callable[[FunctionalState], Any]) -> Maybe:
        """Nothing when the slice is not mounted or the selector fails."""
        return self.get(name).flat_map(lambda c: c.select(selector))

    def dispatch(self, name: str, action: Any) -> Result[FunctionalState, str]:
        return (
            self.get(name)
            .to_result(f"Slice {name} is not mounted")
            .flat_map(lambda c: c.dispatch(action))
        )
