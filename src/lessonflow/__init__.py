"""lessonflow — lesson scheduling over Telegram inline keyboards.

Flow state lives in callback tokens and the lesson store, never in memory:

    from lessonflow import FlowDispatcher, MemoryEventStore

    dispatcher = FlowDispatcher(MemoryEventStore())
    result = await dispatcher.handle_message(message)
"""

from lessonflow.accessor import EventAccessor, MemoryEventStore, TrpcEventAccessor
from lessonflow.actions import Action, ActionKind
from lessonflow.dispatcher import (
    Advance,
    Finish,
    FlowConfig,
    FlowDispatcher,
    FlowResult,
    Reject,
    Stay,
)
from lessonflow.models import (
    CallbackEvent,
    EventAction,
    EventRecord,
    IncomingMessage,
    Locale,
    Period,
)
from lessonflow.registry import ActionRegistry, default_registry

__all__ = (
    "Action",
    "ActionKind",
    "ActionRegistry",
    "Advance",
    "CallbackEvent",
    "EventAccessor",
    "EventAction",
    "EventRecord",
    "Finish",
    "FlowConfig",
    "FlowDispatcher",
    "FlowResult",
    "IncomingMessage",
    "Locale",
    "MemoryEventStore",
    "Period",
    "Reject",
    "Stay",
    "TrpcEventAccessor",
    "default_registry",
)
