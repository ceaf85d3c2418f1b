"""Tests for source factories."""

import asyncio
import logging

import pytest

from pushfx import (
    Emitter,
    ListenerEvents,
    VirtualScheduler,
    empty,
    from_,
    from_event,
    from_iterable,
    interval,
    of,
    range_,
    timer,
)


class _Recorder:
    def __init__(self):
        self.values = []
        self.errors = []
        self.completed = 0

    def next(self, value):
        self.values.append(value)

    def error(self, err):
        self.errors.append(err)

    def complete(self):
        self.completed += 1


class TestEmpty:
    def test_completes_synchronously(self):
        rec = _Recorder()
        empty().subscribe(rec)
        assert rec.values == []
        assert rec.completed == 1

    def test_dispose_after_complete(self):
        sub = empty().subscribe()
        sub.dispose()
        sub.dispose()
        assert sub.disposed


class TestOf:
    def test_deferred_to_next_tick(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        of(5, scheduler=scheduler).subscribe(rec)
        assert rec.values == []
        scheduler.flush()
        assert rec.values == [5]
        assert rec.completed == 1

    def test_dispose_before_tick(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        of(5, scheduler=scheduler).subscribe(rec).dispose()
        assert scheduler.pending == 0
        scheduler.flush()
        assert rec.values == []
        assert rec.completed == 0


class TestFromIterable:
    def test_pushes_in_order_then_completes_once(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        from_iterable([3, 8, 5, 1], scheduler=scheduler).subscribe(rec)
        assert rec.values == []
        scheduler.flush()
        assert rec.values == [3, 8, 5, 1]
        assert rec.completed == 1

    def test_one_tick_for_whole_run(self):
        scheduler = VirtualScheduler()
        from_iterable(range(50), scheduler=scheduler).subscribe()
        assert scheduler.pending == 1

    def test_resubscribe_with_generator_input(self):
        scheduler = VirtualScheduler()
        producer = from_iterable((v * v for v in range(3)), scheduler=scheduler)
        first, second = _Recorder(), _Recorder()
        producer.subscribe(first)
        producer.subscribe(second)
        scheduler.flush()
        assert first.values == [0, 1, 4]
        assert second.values == [0, 1, 4]

    def test_from_alias(self):
        assert from_ is from_iterable

    def test_empty_input(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        from_iterable([], scheduler=scheduler).subscribe(rec)
        scheduler.flush()
        assert rec.values == []
        assert rec.completed == 1


class TestRange:
    def test_inclusive(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        range_(4, 8, scheduler=scheduler).subscribe(rec)
        scheduler.flush()
        assert rec.values == [4, 5, 6, 7, 8]

    def test_single_value(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        range_(3, 3, scheduler=scheduler).subscribe(rec)
        scheduler.flush()
        assert rec.values == [3]

    def test_min_greater_than_max(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        range_(5, 2, scheduler=scheduler).subscribe(rec)
        scheduler.flush()
        assert rec.values == []
        assert rec.completed == 1


class TestInterval:
    def test_ticks_every_period(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        interval(1.0, scheduler=scheduler).subscribe(rec)
        scheduler.advance(0.5)
        assert rec.values == []
        scheduler.advance(3.0)
        assert rec.values == [0, 1, 2]
        assert rec.completed == 0

    def test_dispose_stops_timer(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        sub = interval(1.0, scheduler=scheduler).subscribe(rec)
        scheduler.advance(2.0)
        sub.dispose()
        scheduler.advance(5.0)
        assert rec.values == [0, 1]
        assert scheduler.pending == 0

    def test_take_cancels_interval(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        interval(0.5, scheduler=scheduler).take(3).subscribe(rec)
        scheduler.advance(10.0)
        assert rec.values == [0, 1, 2]
        assert rec.completed == 1
        assert scheduler.pending == 0

    def test_independent_counters_per_subscription(self):
        scheduler = VirtualScheduler()
        ticks = interval(1.0, scheduler=scheduler)
        first, second = _Recorder(), _Recorder()
        ticks.subscribe(first)
        scheduler.advance(2.5)
        ticks.subscribe(second)
        scheduler.advance(0.5)
        assert first.values == [0, 1, 2]
        assert second.values == []
        scheduler.advance(1.0)
        assert second.values == [0]

    def test_rejects_non_positive_period(self):
        with pytest.raises(ValueError):
            interval(0)

    def test_dispose_logged_once(self, caplog):
        scheduler = VirtualScheduler()
        sub = interval(1.0, scheduler=scheduler).subscribe()
        with caplog.at_level(logging.DEBUG, logger="pushfx.sources"):
            sub.dispose()
            sub.dispose()
        assert [r.getMessage() for r in caplog.records] == ["interval disposed"]


class TestTimer:
    def test_fires_once_after_delay(self):
        scheduler = VirtualScheduler()
        rec = _Recorder()
        timer(2.0, "ping", scheduler=scheduler).subscribe(rec)
        scheduler.advance(1.5)
        assert rec.values == []
        scheduler.advance(0.5)
        assert rec.values == ["ping"]
        assert rec.completed == 1

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError):
            timer(-1)


class TestFromEvent:
    def test_pushes_each_occurrence(self):
        button = Emitter()
        rec = _Recorder()
        from_event(button, "click").subscribe(rec)
        button.emit("click", "e1")
        button.emit("other", "ignored")
        button.emit("click", "e2")
        assert rec.values == ["e1", "e2"]
        assert rec.completed == 0

    def test_dispose_removes_listener(self):
        button = Emitter()
        sub = from_event(button, "click").subscribe()
        assert button.listener_count("click") == 1
        sub.dispose()
        sub.dispose()
        assert button.listener_count("click") == 0

    def test_merge_of_buttons(self):
        buttons = [Emitter() for _ in range(3)]
        clicks = [from_event(b, "click").map(lambda _, n=n: f"B{n}") for n, b in enumerate(buttons, 1)]
        received = []
        sub = clicks[0].merge(*clicks[1:]).take(3).subscribe(received.append)
        buttons[2].emit("click")
        buttons[0].emit("click")
        buttons[2].emit("click")
        buttons[1].emit("click")
        assert received == ["B3", "B1", "B3"]
        assert all(b.listener_count("click") == 0 for b in buttons)
        sub.dispose()

    def test_custom_event_source(self):
        class Registry:
            def __init__(self):
                self.calls = []

            def add_listener(self, target, name, callback):
                self.calls.append(("add", target, name))
                self.callback = callback

            def remove_listener(self, target, name, callback):
                self.calls.append(("remove", target, name))

        registry = Registry()
        received = []
        sub = from_event("handle-1", "tick", events=registry).subscribe(received.append)
        registry.callback(7)
        sub.dispose()
        assert received == [7]
        assert registry.calls == [("add", "handle-1", "tick"), ("remove", "handle-1", "tick")]

    def test_listener_events_delegates(self):
        emitter = Emitter()
        events = ListenerEvents()
        seen = []
        events.add_listener(emitter, "x", seen.append)
        emitter.emit("x", 1)
        events.remove_listener(emitter, "x", seen.append)
        emitter.emit("x", 2)
        assert seen == [1]


class TestDefaultScheduler:
    def test_of_on_running_loop(self):
        async def main():
            received = []
            done = asyncio.Event()
            of(5).subscribe(received.append, None, done.set)
            await asyncio.wait_for(done.wait(), timeout=1)
            return received

        assert asyncio.run(main()) == [5]

    def test_interval_take_join(self):
        async def main():
            result = []
            done = asyncio.Event()
            interval(0.01).take(3).join().subscribe(result.append, None, done.set)
            await asyncio.wait_for(done.wait(), timeout=2)
            return result

        assert asyncio.run(main()) == [[0, 1, 2]]

    def test_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            of(1).subscribe()
