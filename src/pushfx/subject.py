"""Subject — multicast hub that is both a consumer and a producer.

Values pushed with next() are rebroadcast to every registered consumer.
Each broadcast walks a snapshot of the registry taken when it starts:
consumers added during a broadcast wait for the next one, consumers
disposed during a broadcast are skipped by their own guard.

error() and complete() stop the hub. The registry is cleared, later
pushes are ignored, and late subscribers get the terminal notification
straight away.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pushfx.consumer import OnComplete, OnError, as_consumer
from pushfx.producer import Producer, RunState, _Sink
from pushfx.subscription import Subscription

logger = logging.getLogger("pushfx.subject")

T = TypeVar("T")


class Subject(Generic[T]):
    """Fan out notifications to many consumers."""

    def __init__(self) -> None:
        self._sinks: list[_Sink[T]] = []
        self._state = RunState.ACTIVE
        self._error: BaseException | None = None

    @property
    def stopped(self) -> bool:
        return self._state is not RunState.ACTIVE

    @property
    def observer_count(self) -> int:
        return len(self._sinks)

    # --- Consumer side ---

    def next(self, value: T) -> None:
        if self.stopped:
            return
        for sink in list(self._sinks):
            sink.next(value)

    def error(self, err: BaseException) -> None:
        if self.stopped:
            return
        self._state = RunState.ERRORED
        self._error = err
        sinks, self._sinks = self._sinks, []
        logger.debug("subject errored, notifying %d consumers", len(sinks))
        for sink in sinks:
            sink.error(err)

    def complete(self) -> None:
        if self.stopped:
            return
        self._state = RunState.COMPLETED
        sinks, self._sinks = self._sinks, []
        logger.debug("subject completed, notifying %d consumers", len(sinks))
        for sink in sinks:
            sink.complete()

    # --- Producer side ---

    def subscribe(
        self,
        on_next: Any = None,
        on_error: OnError | None = None,
        on_complete: OnComplete | None = None,
    ) -> Subscription:
        """Register a consumer. Disposing the result unregisters it."""
        sink: _Sink[T] = _Sink(as_consumer(on_next, on_error, on_complete))

        if self._state is RunState.COMPLETED:
            sink.complete()
        elif self._state is RunState.ERRORED:
            sink.error(self._error)
        else:
            self._sinks.append(sink)
            sink.add(lambda: self._unregister(sink))

        return Subscription(sink.dispose)

    def as_producer(self) -> Producer[T]:
        """Read-only view: subscribe() only, no next/error/complete."""
        return Producer(lambda consumer: self.subscribe(consumer))

    def _unregister(self, sink: _Sink[T]) -> None:
        try:
            self._sinks.remove(sink)
        except ValueError:
            pass  # already removed

    def __repr__(self) -> str:
        return f"Subject({self._state.value}, consumers={len(self._sinks)})"
