"""Subscriptions — handles that cancel an active push run.

A Subscription wraps one cancellation action. dispose() runs it at most
once; the state flips to DISPOSED before the action runs, so an action
that re-enters dispose() (directly or through a consumer reaction) is a
no-op.

CompositeSubscription owns a growable set of children. Children added
after the composite was disposed are disposed on the spot.
"""

from __future__ import annotations

import enum
from typing import Callable, Union

Disposer = Callable[[], None]


class SubscriptionState(enum.Enum):
    ACTIVE = "active"
    DISPOSED = "disposed"


class Subscription:
    """Handle for cancelling a single push run."""

    __slots__ = ("_action", "_state")

    def __init__(self, action: Disposer | None = None) -> None:
        if action is not None and not callable(action):
            raise TypeError(f"dispose action must be callable, got {type(action).__name__}")
        self._action = action
        self._state = SubscriptionState.ACTIVE

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def disposed(self) -> bool:
        return self._state is SubscriptionState.DISPOSED

    def dispose(self) -> None:
        """Release whatever the subscribe call acquired. Idempotent."""
        if self._state is SubscriptionState.DISPOSED:
            return
        self._state = SubscriptionState.DISPOSED
        action, self._action = self._action, None
        if action is not None:
            action()

    def __repr__(self) -> str:
        return f"Subscription({self._state.value})"


class CompositeSubscription(Subscription):
    """A Subscription that disposes a group of child subscriptions together."""

    __slots__ = ("_children",)

    def __init__(self, *children: Subscription) -> None:
        super().__init__()
        self._children: list[Subscription] = list(children)

    def add(self, child: Subscription) -> None:
        if self.disposed:
            child.dispose()
            return
        self._children.append(child)

    def remove(self, child: Subscription) -> None:
        """Forget a child without disposing it."""
        try:
            self._children.remove(child)
        except ValueError:
            pass  # already removed

    def __len__(self) -> int:
        return len(self._children)

    def dispose(self) -> None:
        if self.disposed:
            return
        self._state = SubscriptionState.DISPOSED
        # Snapshot and clear — a child's teardown may call back into remove().
        children = list(self._children)
        self._children.clear()
        for child in children:
            child.dispose()

    def __repr__(self) -> str:
        return f"CompositeSubscription({self._state.value}, children={len(self._children)})"


Teardown = Union[Subscription, Disposer, None]


def as_subscription(teardown: Teardown) -> Subscription:
    """Normalize what a subscribe function returned into a Subscription.

    Accepts a Subscription, anything with a dispose() method, a zero-arg
    callable, or None (nothing to release).
    """
    if isinstance(teardown, Subscription):
        return teardown
    if teardown is None:
        return Subscription()
    dispose = getattr(teardown, "dispose", None)
    if callable(dispose):
        return Subscription(dispose)
    if callable(teardown):
        return Subscription(teardown)
    raise TypeError(
        f"subscribe function must return a Subscription, a callable or None, "
        f"got {type(teardown).__name__}"
    )
