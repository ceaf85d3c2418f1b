"""Textual integration for PushFX. Opt-in — requires textual.

TextualScheduler runs sources on an App's (or any widget's) timers, so
values arrive on the UI's own loop. MessageEvents turns widget messages
into a from_event() source:

    class Demo(App):
        def __init__(self):
            super().__init__()
            self.events = MessageEvents()

        def on_button_pressed(self, message):
            self.events.dispatch(message)

        def on_mount(self):
            btn = self.query_one("#inc")
            from_event(btn, "pressed", events=self.events).tic().subscribe(self.show)

// [LAW:locality-or-seam] Textual coupling stays in this module; the core never imports textual.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from textual.css.query import NoMatches

logger = logging.getLogger("pushfx.textual")

Listener = Callable[[Any], None]


class TextualScheduler:
    """Scheduler backed by MessagePump.set_timer / set_interval."""

    __slots__ = ("_pump",)

    def __init__(self, pump) -> None:
        self._pump = pump

    def schedule_once(self, callback: Callable[[], None], delay: float):
        return self._pump.set_timer(delay, callback)

    def schedule_repeating(self, callback: Callable[[], None], period: float):
        return self._pump.set_interval(period, callback)

    def cancel(self, handle) -> None:
        handle.stop()


def _event_name(message) -> str:
    # Button.Pressed -> "pressed", Input.Changed -> "changed"
    return type(message).__name__.lower()


class MessageEvents:
    """EventSource fed by an app's message handlers.

    Listeners are keyed by (id(widget), event name). A listener that hits
    NoMatches because the widget tree is being rebuilt is skipped.
    """

    def __init__(self) -> None:
        self._listeners: dict[tuple[int, str], list[Listener]] = {}

    def add_listener(self, target, name: str, callback: Listener) -> None:
        self._listeners.setdefault((id(target), name), []).append(callback)

    def remove_listener(self, target, name: str, callback: Listener) -> None:
        key = (id(target), name)
        try:
            self._listeners.get(key, []).remove(callback)
        except ValueError:
            pass  # already removed
        if not self._listeners.get(key):
            self._listeners.pop(key, None)

    def dispatch(self, message, name: str | None = None) -> None:
        """Forward a message to listeners registered on message.control."""
        control = getattr(message, "control", None)
        if control is None:
            return
        key = (id(control), name or _event_name(message))
        for callback in list(self._listeners.get(key, ())):
            try:
                callback(message)
            except NoMatches:
                logger.debug("listener for %s skipped: widget not mounted", key[1])

    def __repr__(self) -> str:
        return f"MessageEvents(listeners={sum(len(v) for v in self._listeners.values())})"
