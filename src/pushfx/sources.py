"""Source factories — Producers built from data, timers and events.

Timing per factory:
    empty()                synchronous, completes inside subscribe()
    of(v)                  one scheduler tick, then v and complete
    from_iterable(values)  one scheduler tick for the whole run
    range_(lo, hi)         as from_iterable over lo..hi inclusive
    interval(period)       0, 1, 2, ... every period seconds, never completes
    from_event(target, n)  every occurrence of event n, never completes

Deferred factories take scheduler=; from_event takes events=. Each
factory's Subscription stops its timer or listener exactly once.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Iterable, Protocol, TypeVar

from pushfx.producer import Producer, _Sink
from pushfx.scheduler import AsyncioScheduler, Scheduler, _check_delay, _check_period
from pushfx.subscription import Subscription

logger = logging.getLogger("pushfx.sources")

T = TypeVar("T")

Listener = Callable[[Any], None]

# Stateless — resolves the running loop each time it schedules.
_default_scheduler = AsyncioScheduler()


class EventSource(Protocol):
    def add_listener(self, target: Any, name: str, callback: Listener) -> None: ...

    def remove_listener(self, target: Any, name: str, callback: Listener) -> None: ...


class ListenerEvents:
    """EventSource that delegates to the target's own add/remove_listener methods."""

    __slots__ = ()

    def add_listener(self, target: Any, name: str, callback: Listener) -> None:
        target.add_listener(name, callback)

    def remove_listener(self, target: Any, name: str, callback: Listener) -> None:
        target.remove_listener(name, callback)


class Emitter:
    """Minimal named-event target. Works with from_event() out of the box."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def add_listener(self, name: str, callback: Listener) -> None:
        self._listeners.setdefault(name, []).append(callback)

    def remove_listener(self, name: str, callback: Listener) -> None:
        try:
            self._listeners.get(name, []).remove(callback)
        except ValueError:
            pass  # already removed

    def listener_count(self, name: str) -> int:
        return len(self._listeners.get(name, ()))

    def emit(self, name: str, value: Any = None) -> None:
        # Snapshot — listeners may unregister while we dispatch.
        for callback in list(self._listeners.get(name, ())):
            callback(value)

    def __repr__(self) -> str:
        counts = {name: len(cbs) for name, cbs in self._listeners.items() if cbs}
        return f"Emitter({counts})"


_default_events = ListenerEvents()


def _disposer(name: str, release: Callable[[], None] | None = None) -> Subscription:
    def _dispose() -> None:
        if release is not None:
            release()
        logger.debug("%s disposed", name)

    return Subscription(_dispose)


def empty() -> Producer:
    """Complete immediately, without values.

    ------------------|
    """

    def _subscribe(consumer: _Sink) -> Subscription:
        consumer.complete()
        return _disposer("empty")

    return Producer(_subscribe)


def of(value: T, *, scheduler: Scheduler | None = None) -> Producer[T]:
    """Push a single value on the next tick, then complete.

    -5-|------------->
    """
    scheduler = scheduler or _default_scheduler

    def _subscribe(consumer: _Sink[T]) -> Subscription:
        def _run() -> None:
            if consumer.closed:
                return
            consumer.next(value)
            consumer.complete()

        handle = scheduler.schedule_once(_run, 0)
        return _disposer("of", lambda: scheduler.cancel(handle))

    return Producer(_subscribe)


def from_iterable(values: Iterable[T], *, scheduler: Scheduler | None = None) -> Producer[T]:
    """Push every value in order on the next tick, then complete.

    The values are captured when the factory is called, so the Producer
    can be subscribed again. Disposal is checked before every push.

    from_iterable([3, 8, 5, 1])
    -3-8-5-1-|------->
    """
    items = tuple(values)
    scheduler = scheduler or _default_scheduler

    def _subscribe(consumer: _Sink[T]) -> Subscription:
        def _run() -> None:
            for item in items:
                if consumer.closed:
                    return
                consumer.next(item)
            consumer.complete()

        handle = scheduler.schedule_once(_run, 0)
        return _disposer("from", lambda: scheduler.cancel(handle))

    return Producer(_subscribe)


from_ = from_iterable


def range_(start: int, stop: int, *, scheduler: Scheduler | None = None) -> Producer[int]:
    """Integers start..stop inclusive. Nothing but complete when start > stop.

    range_(4, 8)
    -4-5-6-7-8-|--->
    """
    return from_iterable(range(start, stop + 1), scheduler=scheduler)


def interval(period: float, *, scheduler: Scheduler | None = None) -> Producer[int]:
    """Push 0, 1, 2, ... every period seconds. Never completes.

    -0-1-2-3-4-5-6----->
    """
    _check_period(period)
    scheduler = scheduler or _default_scheduler

    def _subscribe(consumer: _Sink[int]) -> Subscription:
        counter = itertools.count()

        def _tick() -> None:
            if not consumer.closed:
                consumer.next(next(counter))

        handle = scheduler.schedule_repeating(_tick, period)
        return _disposer("interval", lambda: scheduler.cancel(handle))

    return Producer(_subscribe)


def timer(delay: float, value: T = 0, *, scheduler: Scheduler | None = None) -> Producer[T]:
    """Push value once after delay seconds, then complete.

    timer(2.0)
    ----0-|--->
    """
    _check_delay(delay)
    scheduler = scheduler or _default_scheduler

    def _subscribe(consumer: _Sink[T]) -> Subscription:
        def _fire() -> None:
            if consumer.closed:
                return
            consumer.next(value)
            consumer.complete()

        handle = scheduler.schedule_once(_fire, delay)
        return _disposer("timer", lambda: scheduler.cancel(handle))

    return Producer(_subscribe)


def from_event(target: Any, name: str, *, events: EventSource | None = None) -> Producer:
    """Push every occurrence of the named event on target. Never completes.

    Usage:
        button = Emitter()
        clicks = from_event(button, "click").tic()
        sub = clicks.subscribe(print)
        button.emit("click")   # prints 1
        sub.dispose()          # listener removed
    """
    events = events or _default_events

    def _subscribe(consumer: _Sink) -> Subscription:
        def _handler(event: Any) -> None:
            consumer.next(event)

        events.add_listener(target, name, _handler)
        return _disposer("from_event", lambda: events.remove_listener(target, name, _handler))

    return Producer(_subscribe)
