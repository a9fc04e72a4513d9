# Overview: Generic functional state container; middleware chain in front of a pure reducer.

"""
Functional State Container

================================================================================
PURPOSE: Hold one slice of client state and change it only through actions
================================================================================

DISPATCH PIPELINE (one action at a time):
    1. every middleware(action, state) runs in order; each returns
       Result[bool, str]. The first Failure stops the pipeline, the state is
       left exactly as it was, and the Failure goes back to the caller.
    2. reducer(state, action) -> Result[state, str]. Pure. A Failure leaves the
       state unchanged.
    3. on success the container stamps last_updated/version, swaps the state,
       then calls on_committed(action, new_state) on every middleware that
       has one. Those hooks are side effects (logging, persistence): an
       exception there is logged and never undoes the commit.
================================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Protocol, Sequence, TypeVar

from ..fp import NOTHING, Failure, Maybe, Result, Success, from_nullable
from ..time_utils import epoch_ms

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger("giftgrab.client")


@dataclass(frozen=True)
class FunctionalState(Generic[T]):
    data: T
    loading: bool = False
    error: Maybe = NOTHING
    last_updated: int = 0
    version: int = 0


Reducer = Callable[[FunctionalState, Any], "Result[FunctionalState, str]"]


class Middleware(Protocol):
    def __call__(self, action: Any, state: FunctionalState) -> "Result[bool, str]": ...


class StateContainer(Generic[T]):
    """One mounted slice: current state, its reducer and its middleware chain."""

    def __init__(
        self,
        name: str,
        initial_state: FunctionalState[T],
        reducer: Reducer,
        middleware: Sequence[Middleware] = (),
    ):
        self.name = name
        self._state = initial_state
        self._reducer = reducer
        self._middleware = list(middleware)

    @property
    def state(self) -> FunctionalState[T]:
        return self._state

    @property
    def data(self) -> T:
        return self._state.data

    def dispatch(self, action: Any) -> "Result[FunctionalState[T], str]":
        current = self._state

        for mw in self._middleware:
            verdict = mw(action, current)
            if verdict.is_failure:
                logger.debug("[%s] %s rejected: %s", self.name, type(action).__name__, verdict.error)
                return Failure(verdict.error)

        try:
            reduced = self._reducer(current, action)
        except Exception as exc:
            logger.exception("[%s] reducer raised on %s", self.name, type(action).__name__)
            return Failure(f"Unexpected error: {exc}")

        if reduced.is_failure:
            return Failure(reduced.error)

        new_state = replace(
            reduced.value,
            last_updated=epoch_ms(),
            version=current.version + 1,
        )
        self._state = new_state

        for mw in self._middleware:
            hook = getattr(mw, "on_committed", None)
            if hook is None:
                continue
            try:
                hook(action, new_state)
            except Exception:
                logger.exception("[%s] on_committed hook of %s failed", self.name, type(mw).__name__)

        return Success(new_state)

    def select(self, selector: Callable[[FunctionalState[T]], R]) -> "Maybe[R]":
        """Apply selector to the current state; Nothing if it raises or yields None."""
        try:
            return from_nullable(selector(self._state))
        except Exception:
            logger.debug("[%s] selector failed", self.name, exc_info=True)
            return NOTHING

    def set_loading(self, loading: bool) -> None:
        self._state = replace(self._state, loading=loading)

    def set_error(self, error: Maybe) -> None:
        self._state = replace(self._state, error=error)


def unknown_action(slice_name: str, action: Any) -> Failure:
    return Failure(f"Unknown action for {slice_name}: {type(action).__name__}")


def dispatch_table(slice_name: str, handlers: dict) -> Reducer:
    """
    Build a reducer from an exact-type handler table.

    Actions whose type is not in the table fail instead of passing through.
    """
    def reducer(state: FunctionalState, action: Any):
        handler = handlers.get(type(action))
        if handler is None:
            return unknown_action(slice_name, action)
        return handler(state, action)

    return reducer


def with_data(state: FunctionalState[T], **changes) -> "Success[FunctionalState[T]]":
    """Success of state with its data dataclass updated."""
    return Success(replace(state, data=replace(state.data, **changes)))
