"""PushFX: a minimal push-based reactive stream engine for Python."""

from importlib.metadata import version as _version

__version__ = _version("pushfx")

from pushfx.consumer import Consumer, as_consumer
from pushfx.subscription import Subscription, SubscriptionState, CompositeSubscription
from pushfx.producer import Producer, RunState
from pushfx.subject import Subject
from pushfx.scheduler import Scheduler, AsyncioScheduler, VirtualScheduler
from pushfx.sources import (
    EventSource,
    ListenerEvents,
    Emitter,
    empty,
    of,
    from_iterable,
    from_,
    range_,
    interval,
    timer,
    from_event,
)
# textual NOT auto-imported — opt-in only

__all__ = [
    "Consumer",
    "as_consumer",
    "Subscription",
    "SubscriptionState",
    "CompositeSubscription",
    "Producer",
    "RunState",
    "Subject",
    "Scheduler",
    "AsyncioScheduler",
    "VirtualScheduler",
    "EventSource",
    "ListenerEvents",
    "Emitter",
    "empty",
    "of",
    "from_iterable",
    "from_",
    "range_",
    "interval",
    "timer",
    "from_event",
]
