"""Consumers — the three-reaction sink a Producer pushes into.

A Consumer holds optional on_next/on_error/on_complete reactions. A
missing reaction is a silent no-op, so producers can always call all
three. Reactions are validated when the Consumer is built, not when
they first fire.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

OnNext = Callable[[T], None]
OnError = Callable[[BaseException], None]
OnComplete = Callable[[], None]

_REACTIONS = ("next", "error", "complete")


def _check(name: str, fn: object) -> None:
    if fn is not None and not callable(fn):
        raise TypeError(f"{name} must be callable, got {type(fn).__name__}")


class Consumer(Generic[T]):
    """Wraps a partial set of reactions with no-op defaults."""

    __slots__ = ("_on_next", "_on_error", "_on_complete")

    def __init__(
        self,
        on_next: OnNext[T] | None = None,
        on_error: OnError | None = None,
        on_complete: OnComplete | None = None,
    ) -> None:
        _check("on_next", on_next)
        _check("on_error", on_error)
        _check("on_complete", on_complete)
        self._on_next = on_next
        self._on_error = on_error
        self._on_complete = on_complete

    def next(self, value: T) -> None:
        if self._on_next is not None:
            self._on_next(value)

    def error(self, err: BaseException) -> None:
        if self._on_error is not None:
            self._on_error(err)

    def complete(self) -> None:
        if self._on_complete is not None:
            self._on_complete()

    def __repr__(self) -> str:
        present = [
            name
            for name, fn in zip(_REACTIONS, (self._on_next, self._on_error, self._on_complete))
            if fn is not None
        ]
        return f"Consumer({', '.join(present) or 'no reactions'})"


def as_consumer(
    on_next: Any = None,
    on_error: OnError | None = None,
    on_complete: OnComplete | None = None,
) -> Consumer:
    """Build a Consumer from whatever a caller handed to subscribe().

    Accepted shapes for the first argument:
        - a Consumer (returned as-is)
        - a mapping with optional "next"/"error"/"complete" keys
        - an object exposing any of next()/error()/complete()
        - a plain callable, used as on_next alongside on_error/on_complete
        - None
    """
    if on_next is None or (callable(on_next) and not _is_consumer_like(on_next)):
        return Consumer(on_next, on_error, on_complete)

    if on_error is not None or on_complete is not None:
        raise TypeError("pass either a consumer object or separate callbacks, not both")

    if isinstance(on_next, Consumer):
        return on_next
    if isinstance(on_next, Mapping):
        unknown = set(on_next) - set(_REACTIONS)
        if unknown:
            raise TypeError(f"unknown consumer keys: {', '.join(sorted(unknown))}")
        return Consumer(on_next.get("next"), on_next.get("error"), on_next.get("complete"))
    if _is_consumer_like(on_next):
        return Consumer(
            getattr(on_next, "next", None),
            getattr(on_next, "error", None),
            getattr(on_next, "complete", None),
        )
    raise TypeError(f"cannot build a consumer from {type(on_next).__name__}")


def _is_consumer_like(obj: object) -> bool:
    if isinstance(obj, (Consumer, Mapping)):
        return True
    return any(callable(getattr(obj, name, None)) for name in _REACTIONS)
