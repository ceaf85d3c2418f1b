"""Producers — lazy, push-based value sources with operator chaining.

A Producer wraps a subscribe function. Nothing happens until subscribe()
is called; every call starts an independent run. Operators return a new
Producer that, when subscribed, subscribes to its upstream through a
wrapping consumer. Values flow downstream, dispose() flows upstream.

Every run pushes through a _Sink, which owns the run's resources and
enforces the terminal-state rule: after error() or complete() nothing
else is delivered, and upstream resources are released before the
terminal notification goes out.
"""

from __future__ import annotations

import enum
import functools
import operator
from typing import Any, Callable, Generic, TypeVar

from pushfx.consumer import Consumer, OnComplete, OnError, as_consumer
from pushfx.subscription import CompositeSubscription, Subscription, Teardown, as_subscription

T = TypeVar("T")
U = TypeVar("U")
A = TypeVar("A")

_UNSET = object()


class RunState(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ERRORED = "errored"
    DISPOSED = "disposed"


class _Sink(Consumer[T]):
    """Guarded consumer for one run. Owns the run's upstream resources."""

    __slots__ = ("_downstream", "_state", "_resources")

    def __init__(self, downstream: Consumer[T]) -> None:
        super().__init__()
        self._downstream = downstream
        self._state = RunState.ACTIVE
        self._resources = CompositeSubscription()

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is not RunState.ACTIVE

    def add(self, teardown: Teardown) -> None:
        """Tie a resource to this run. Released at once if the run is over."""
        self._resources.add(as_subscription(teardown))

    def remove(self, subscription: Subscription) -> None:
        """Stop tracking a resource that already released itself."""
        self._resources.remove(subscription)

    def next(self, value: T) -> None:
        if self._state is RunState.ACTIVE:
            self._downstream.next(value)

    def error(self, err: BaseException) -> None:
        if self._state is not RunState.ACTIVE:
            return
        self._state = RunState.ERRORED
        self._resources.dispose()
        self._downstream.error(err)

    def complete(self) -> None:
        if self._state is not RunState.ACTIVE:
            return
        self._state = RunState.COMPLETED
        self._resources.dispose()
        self._downstream.complete()

    def dispose(self) -> None:
        if self._state is RunState.ACTIVE:
            self._state = RunState.DISPOSED
        self._resources.dispose()

    def __repr__(self) -> str:
        return f"_Sink({self._state.value})"


SubscribeFn = Callable[[_Sink], Teardown]


class Producer(Generic[T]):
    """Lazy description of how to push values into a consumer.

    subscribe_fn receives a guarded consumer with next/error/complete plus
    closed and add(). It returns what to release on dispose: a
    Subscription, a zero-arg callable, or None.

    Usage:
        def ticks(consumer):
            consumer.next(1)
            consumer.next(2)
            consumer.complete()

        Producer(ticks).map(lambda v: v * 10).subscribe(print)
        # prints 10, 20
    """

    __slots__ = ("_subscribe_fn",)

    def __init__(self, subscribe_fn: SubscribeFn) -> None:
        if not callable(subscribe_fn):
            raise TypeError(f"subscribe_fn must be callable, got {type(subscribe_fn).__name__}")
        self._subscribe_fn = subscribe_fn

    def subscribe(
        self,
        on_next: Any = None,
        on_error: OnError | None = None,
        on_complete: OnComplete | None = None,
    ) -> Subscription:
        """Start a run. Returns its Subscription synchronously.

        Accepts a consumer-like object (Consumer, mapping, object with
        next/error/complete) or up to three callables.
        """
        sink: _Sink[T] = _Sink(as_consumer(on_next, on_error, on_complete))
        try:
            sink.add(self._subscribe_fn(sink))
        except BaseException:
            # Release whatever the run acquired before failing.
            sink.dispose()
            raise
        return Subscription(sink.dispose)

    def pipe(self, *fns: Callable[[Producer], Producer]) -> Producer:
        """Apply producer-to-producer functions left to right.

        Usage:
            def evens(source):
                return source.filter(lambda v: v % 2 == 0)

            range_(1, 10).pipe(evens, lambda p: p.take(3))
        """
        return functools.reduce(lambda acc, fn: fn(acc), fns, self)

    # --- Transformation ---

    def map(self, fn: Callable[[T], U]) -> Producer[U]:
        """Transform each value through fn."""
        _check_callable("map", fn)
        source = self

        def _subscribe(sink: _Sink[U]) -> Subscription:
            def _on_next(value: T) -> None:
                try:
                    result = fn(value)
                except Exception as exc:
                    sink.error(exc)
                    return
                sink.next(result)

            return source.subscribe(_on_next, sink.error, sink.complete)

        return Producer(_subscribe)

    def filter(self, predicate: Callable[[T], bool]) -> Producer[T]:
        """Only pass values where predicate returns True."""
        _check_callable("filter", predicate)
        source = self

        def _subscribe(sink: _Sink[T]) -> Subscription:
            def _on_next(value: T) -> None:
                try:
                    keep = predicate(value)
                except Exception as exc:
                    sink.error(exc)
                    return
                if keep:
                    sink.next(value)

            return source.subscribe(_on_next, sink.error, sink.complete)

        return Producer(_subscribe)

    def tap(
        self,
        on_next: Callable[[T], None] | None = None,
        on_error: OnError | None = None,
        on_complete: OnComplete | None = None,
    ) -> Producer[T]:
        """Run side effects before forwarding each notification unchanged.

        A side effect that raises turns into an error notification.
        """
        effects = Consumer(on_next, on_error, on_complete)
        source = self

        def _subscribe(sink: _Sink[T]) -> Subscription:
            def _on_next(value: T) -> None:
                try:
                    effects.next(value)
                except Exception as exc:
                    sink.error(exc)
                    return
                sink.next(value)

            def _on_error(err: BaseException) -> None:
                try:
                    effects.error(err)
                except Exception as exc:
                    err = exc
                sink.error(err)

            def _on_complete() -> None:
                try:
                    effects.complete()
                except Exception as exc:
                    sink.error(exc)
                    return
                sink.complete()

            return source.subscribe(_on_next, _on_error, _on_complete)

        return Producer(_subscribe)

    do = tap

    def scan(self, accumulator: Callable[[A, T], A], seed: A) -> Producer[A]:
        """Fold each value into a running state and emit the state every time.

        The state starts from seed on every subscribe.
        """
        _check_callable("scan", accumulator)
        source = self

        def _subscribe(sink: _Sink[A]) -> Subscription:
            state = [seed]

            def _on_next(value: T) -> None:
                try:
                    state[0] = accumulator(state[0], value)
                except Exception as exc:
                    sink.error(exc)
                    return
                sink.next(state[0])

            return source.subscribe(_on_next, sink.error, sink.complete)

        return Producer(_subscribe)

    def sum(self) -> Producer:
        """Running total: emits the partial sum after every value.

        0-1-2-3-4-5-->  sum()  0-1-3-6-10-15-->
        """
        return self.scan(operator.add, 0)

    def reduce(self) -> Producer:
        """Final total, emitted once on completion."""
        return self.sum().take_last()

    def uno(self) -> Producer[int]:
        """Map every value to 1."""
        return self.map(lambda _: 1)

    def tic(self) -> Producer[int]:
        """Running count of values seen so far.

        10-3-6-2-8-->  tic()  1-2-3-4-5-->
        """
        return self.uno().sum()

    # --- Filtering ---

    def take(self, count: int) -> Producer[T]:
        """Forward the first count values, then complete and dispose upstream.

        count <= 0 completes immediately without subscribing upstream.
        """
        source = self

        def _subscribe(sink: _Sink[T]) -> Subscription | None:
            if count <= 0:
                sink.complete()
                return None
            seen = [0]

            def _on_next(value: T) -> None:
                seen[0] += 1
                sink.next(value)
                if seen[0] >= count:
                    sink.complete()

            return source.subscribe(_on_next, sink.error, sink.complete)

        return Producer(_subscribe)

    def take_last(self) -> Producer[T]:
        """Emit only the last value, once upstream completes.

        Completes without a value if upstream never emitted.
        """
        source = self

        def _subscribe(sink: _Sink[T]) -> Subscription:
            last: list[Any] = [_UNSET]

            def _on_next(value: T) -> None:
                last[0] = value

            def _on_complete() -> None:
                if last[0] is not _UNSET:
                    sink.next(last[0])
                sink.complete()

            return source.subscribe(_on_next, sink.error, _on_complete)

        return Producer(_subscribe)

    # --- Accumulation ---

    def join(self) -> Producer[list[T]]:
        """Collect every value into a list, emitted once on completion."""
        source = self

        def _subscribe(sink: _Sink[list[T]]) -> Subscription:
            values: list[T] = []

            def _on_complete() -> None:
                sink.next(values)
                sink.complete()

            return source.subscribe(values.append, sink.error, _on_complete)

        return Producer(_subscribe)

    # --- Combination ---

    def merge(self, *others: Producer) -> Producer:
        """Interleave values from self and every other producer.

        The first error from any source is forwarded at once and disposes
        all sources. Completes after every source has completed.
        """
        for other in others:
            if not isinstance(other, Producer):
                raise TypeError(f"merge() expects Producers, got {type(other).__name__}")
        sources = (self, *others)

        def _subscribe(sink: _Sink) -> None:
            remaining = [len(sources)]

            def _on_complete() -> None:
                remaining[0] -= 1
                if remaining[0] == 0:
                    sink.complete()

            for source in sources:
                if sink.closed:
                    break
                sink.add(source.subscribe(sink.next, sink.error, _on_complete))

        return Producer(_subscribe)

    def merge_all(self) -> Producer:
        """Flatten a producer of producers.

        Each inner producer is subscribed as it arrives. Completes once the
        outer source and every inner subscribed so far have completed.
        """
        source = self

        def _subscribe(sink: _Sink) -> None:
            # The outer source counts as the first subscribed producer.
            counts = {"subscribed": 1, "completed": 0}

            def _complete_one() -> None:
                counts["completed"] += 1
                if counts["completed"] == counts["subscribed"]:
                    sink.complete()

            def _on_inner(inner: Producer) -> None:
                if sink.closed:
                    return
                if not isinstance(inner, Producer):
                    sink.error(TypeError(f"merge_all() expects Producers, got {type(inner).__name__}"))
                    return
                # Count before subscribing, so an inner that completes
                # synchronously cannot close the run early.
                counts["subscribed"] += 1
                done = [False]
                ref: list[Subscription | None] = [None]

                def _on_inner_complete() -> None:
                    done[0] = True
                    if ref[0] is not None:
                        sink.remove(ref[0])
                    _complete_one()

                try:
                    subscription = inner.subscribe(sink.next, sink.error, _on_inner_complete)
                except Exception as exc:
                    sink.error(exc)
                    return
                if not done[0]:
                    ref[0] = subscription
                    sink.add(subscription)

            sink.add(source.subscribe(_on_inner, sink.error, _complete_one))

        return Producer(_subscribe)

    def merge_map(self, fn: Callable[[T], Producer[U]]) -> Producer[U]:
        """Map each value to a producer and merge them all."""
        return self.map(fn).merge_all()

    def __repr__(self) -> str:
        name = getattr(self._subscribe_fn, "__qualname__", repr(self._subscribe_fn))
        return f"Producer({name})"


def _check_callable(op: str, fn: object) -> None:
    if not callable(fn):
        raise TypeError(f"{op}() expects a callable, got {type(fn).__name__}")
