# Overview: Result and Maybe values; every fallible engine operation returns one of these.

"""
Result / Maybe

Result[T, E] is either Success(value) or Failure(error).
Maybe[T] is either Some(value) or NOTHING.

Both are frozen dataclasses with combinators, so call sites chain:

    find_person(pid).flat_map(check_active).map(to_view).get_or_else(None)

Errors travel as values. Nothing here raises for expected control flow;
`get_or_raise` exists only for boundaries that want an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


# ============================================================================
# RESULT
# ============================================================================

@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    def map(self, fn: Callable[[T], U]) -> "Success[U]":
        return Success(fn(self.value))

    def flat_map(self, fn: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        return fn(self.value)

    def map_error(self, fn: Callable[[Any], F]) -> "Success[T]":
        return self

    def get_or_else(self, default: T) -> T:
        return self.value

    def get_or_raise(self) -> T:
        return self.value

    def to_maybe(self) -> "Maybe[T]":
        return Some(self.value)


@dataclass(frozen=True)
class Failure(Generic[E]):
    error: E

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    def map(self, fn: Callable[[Any], U]) -> "Failure[E]":
        return self

    def flat_map(self, fn: Callable[[Any], "Result[U, E]"]) -> "Failure[E]":
        return self

    def map_error(self, fn: Callable[[E], F]) -> "Failure[F]":
        return Failure(fn(self.error))

    def get_or_else(self, default: T) -> T:
        return default

    def get_or_raise(self):
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(str(self.error))

    def to_maybe(self) -> "Maybe[Any]":
        return NOTHING


Result = Union[Success[T], Failure[E]]


def try_call(fn: Callable[[], T]) -> "Result[T, Exception]":
    """Run fn and capture any exception as a Failure."""
    try:
        return Success(fn())
    except Exception as exc:
        return Failure(exc)


def traverse(items: Iterable[T], fn: Callable[[T], "Result[U, E]"]) -> "Result[list[U], E]":
    """Apply fn to every item; the first Failure wins, otherwise Success of all values."""
    values: list[U] = []
    for item in items:
        result = fn(item)
        if result.is_failure:
            return result
        values.append(result.value)
    return Success(values)


# ============================================================================
# MAYBE
# ============================================================================

@dataclass(frozen=True)
class Some(Generic[T]):
    value: T

    @property
    def is_some(self) -> bool:
        return True

    @property
    def is_nothing(self) -> bool:
        return False

    def map(self, fn: Callable[[T], U]) -> "Some[U]":
        return Some(fn(self.value))

    def flat_map(self, fn: Callable[[T], "Maybe[U]"]) -> "Maybe[U]":
        return fn(self.value)

    def get_or_else(self, default: T) -> T:
        return self.value

    def or_none(self) -> T | None:
        return self.value

    def to_result(self, error: E) -> "Success[T]":
        return Success(self.value)


@dataclass(frozen=True)
class Nothing:
    @property
    def is_some(self) -> bool:
        return False

    @property
    def is_nothing(self) -> bool:
        return True

    def map(self, fn: Callable[[Any], U]) -> "Nothing":
        return self

    def flat_map(self, fn: Callable[[Any], "Maybe[U]"]) -> "Nothing":
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def or_none(self) -> None:
        return None

    def to_result(self, error: E) -> "Failure[E]":
        return Failure(error)


NOTHING = Nothing()

Maybe = Union[Some[T], Nothing]


def from_nullable(value: T | None) -> "Maybe[T]":
    return Some(value) if value is not None else NOTHING


def find_first(items: Iterable[T], predicate: Callable[[T], bool]) -> "Maybe[T]":
    for item in items:
        if predicate(item):
            return Some(item)
    return NOTHING
