"""Schedulers — the deferred/periodic callback capability sources run on.

Sources never reach for a global timer. They take a Scheduler:

    schedule_once(callback, delay) -> handle
    schedule_repeating(callback, period) -> handle
    cancel(handle)

Delays and periods are in seconds.

AsyncioScheduler is the default: single-threaded, resolves the running
event loop when work is scheduled. VirtualScheduler runs on a manual
clock for tests and simulations.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Any, Callable, Protocol

Callback = Callable[[], None]


class Scheduler(Protocol):
    def schedule_once(self, callback: Callback, delay: float) -> Any: ...

    def schedule_repeating(self, callback: Callback, period: float) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


def _check_delay(delay: float) -> None:
    if delay < 0:
        raise ValueError(f"delay must be >= 0, got {delay!r}")


def _check_period(period: float) -> None:
    if period <= 0:
        raise ValueError(f"period must be > 0, got {period!r}")


# ─── asyncio ────────────────────────────────────────────────────────────────


class _RepeatingHandle:
    """Re-arms loop.call_at on a fixed grid so ticks do not drift."""

    __slots__ = ("_loop", "_callback", "_period", "_deadline", "_timer", "_cancelled")

    def __init__(self, loop: asyncio.AbstractEventLoop, callback: Callback, period: float) -> None:
        self._loop = loop
        self._callback = callback
        self._period = period
        self._deadline = loop.time() + period
        self._cancelled = False
        self._timer = loop.call_at(self._deadline, self._fire)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Re-arm first — the callback may cancel us.
        self._deadline += self._period
        self._timer = self._loop.call_at(self._deadline, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()


class AsyncioScheduler:
    """Schedules on an asyncio event loop.

    With no loop given, uses asyncio.get_running_loop() at scheduling
    time, so one instance serves any loop. Scheduling outside a running
    loop raises RuntimeError.
    """

    __slots__ = ("_loop",)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def schedule_once(self, callback: Callback, delay: float) -> asyncio.TimerHandle:
        _check_delay(delay)
        return self._get_loop().call_later(delay, callback)

    def schedule_repeating(self, callback: Callback, period: float) -> _RepeatingHandle:
        _check_period(period)
        return _RepeatingHandle(self._get_loop(), callback, period)

    def cancel(self, handle: asyncio.TimerHandle | _RepeatingHandle) -> None:
        handle.cancel()

    def __repr__(self) -> str:
        return f"AsyncioScheduler(loop={self._loop!r})"


# ─── Virtual time ───────────────────────────────────────────────────────────


class VirtualTask:
    """A unit of work queued on a VirtualScheduler."""

    __slots__ = ("callback", "due", "period", "cancelled")

    def __init__(self, callback: Callback, due: float, period: float | None) -> None:
        self.callback = callback
        self.due = due
        self.period = period
        self.cancelled = False

    def __repr__(self) -> str:
        kind = "once" if self.period is None else f"every {self.period}"
        state = " cancelled" if self.cancelled else ""
        return f"VirtualTask(due={self.due}, {kind}{state})"


class VirtualScheduler:
    """Scheduler on a manually advanced clock.

    Nothing runs until advance() or flush() is called. Tasks due at the
    same instant run in the order they were scheduled.

    Usage:
        scheduler = VirtualScheduler()
        interval(1.0, scheduler=scheduler).subscribe(log.append)
        scheduler.advance(3.0)
        # log == [0, 1, 2]
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, VirtualTask]] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) tasks."""
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def _push(self, task: VirtualTask) -> None:
        heapq.heappush(self._queue, (task.due, next(self._seq), task))

    def schedule_once(self, callback: Callback, delay: float) -> VirtualTask:
        _check_delay(delay)
        task = VirtualTask(callback, self._now + delay, None)
        self._push(task)
        return task

    def schedule_repeating(self, callback: Callback, period: float) -> VirtualTask:
        _check_period(period)
        task = VirtualTask(callback, self._now + period, period)
        self._push(task)
        return task

    def cancel(self, handle: VirtualTask) -> None:
        handle.cancelled = True

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running every task that falls due."""
        if seconds < 0:
            raise ValueError(f"cannot advance by a negative amount: {seconds!r}")
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = due
            if task.period is not None:
                task.due = due + task.period
                self._push(task)
            task.callback()
        self._now = target

    def flush(self) -> None:
        """Run everything due now, including zero-delay work scheduled while flushing."""
        self.advance(0)

    def __repr__(self) -> str:
        return f"VirtualScheduler(now={self._now}, pending={self.pending})"
