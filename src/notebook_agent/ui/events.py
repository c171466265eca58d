"""Event bus infrastructure for projecting conversation turns to a front end.

The conversation engine never renders anything itself. It describes what
happened during a turn as :class:`Event` instances; front ends subscribe to
the ones they care about.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Generic,
    TypeVar,
    TYPE_CHECKING,
)
from weakref import WeakMethod, ref

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events.

    Example::

        @dataclass(slots=True)
        class TurnCanceled(Event):
            turn_id: str
    """

    pass


# High-frequency event types that should not log each publish
_QUIET_EVENT_TYPES: set[type] = set()


# =============================================================================
# Turn Events
# =============================================================================


@dataclass(slots=True)
class TurnStarted(Event):
    """Emitted when a user turn begins.

    Attributes:
        turn_id: Identifier for this turn (e.g., "turn-1").
        prompt: The user input that started the turn.
        scope: Context scope value selected for the turn.
    """

    turn_id: str
    prompt: str
    scope: str


@dataclass(slots=True)
class TurnPhaseChanged(Event):
    """Emitted on every phase transition of a turn.

    Attributes:
        turn_id: Identifier of the turn.
        phase: Value of the new phase (e.g., "awaiting_model").
    """

    turn_id: str
    phase: str


_QUIET_EVENT_TYPES.add(TurnPhaseChanged)


@dataclass(slots=True)
class MessageAppended(Event):
    """Emitted when the engine appends to the conversation history.

    Attributes:
        turn_id: Identifier of the turn.
        role: Role of the appended message.
        content: Message text.
        index: Position of the message in the history.
    """

    turn_id: str
    role: str
    content: str
    index: int


@dataclass(slots=True)
class ToolExecuted(Event):
    """Emitted after a tool call has been dispatched.

    Attributes:
        turn_id: Identifier of the turn.
        tool_name: Name the model used for the tool.
        arguments: Parameters the model supplied.
        result: Text returned by the dispatcher.
        success: Whether the tool completed.
        duration_ms: Execution time in milliseconds.
    """

    turn_id: str
    tool_name: str
    arguments: Any = None
    result: str = ""
    success: bool = True
    duration_ms: float = 0.0


@dataclass(slots=True)
class NoticeRaised(Event):
    """Out-of-band notice for the user (missing API key, created document).

    Attributes:
        message: The notice text.
    """

    message: str


@dataclass(slots=True)
class TurnCompleted(Event):
    """Emitted when a turn has appended its final assistant message.

    Attributes:
        turn_id: Identifier of the turn.
        reply: The final assistant text.
        tool_name: Tool dispatched during the turn, if any.
    """

    turn_id: str
    reply: str
    tool_name: str | None = None


@dataclass(slots=True)
class TurnCanceled(Event):
    """Emitted when the task running a turn is cancelled.

    Attributes:
        turn_id: Identifier of the canceled turn.
        phase: Phase the turn was in when canceled.
    """

    turn_id: str
    phase: str


class EventBus(Generic[E]):
    """A typed publish-subscribe event bus.

    Handlers are stored as weak references where possible so subscribers
    that go away are dropped automatically.

    Example::

        bus = EventBus()

        def on_notice(event: NoticeRaised) -> None:
            print(event.message)

        bus.subscribe(NoticeRaised, on_notice)
        bus.publish(NoticeRaised(message="OpenAI API Key is missing."))
        bus.unsubscribe(NoticeRaised, on_notice)

    Thread Safety:
        Not thread-safe. Publish from the thread running the event loop.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``.

        Subscribing the same handler twice results in two invocations.
        """
        handler_ref = _HandlerRef.create(handler)
        self._handlers[event_type].append(handler_ref)
        logger.debug(
            "Subscribed handler %s to event type %s",
            _handler_name(handler),
            event_type.__name__,
        )

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return

        for i, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(i)
                logger.debug(
                    "Unsubscribed handler %s from event type %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                return

    def publish(self, event: E) -> None:
        """Invoke the handlers for ``event`` in registration order.

        A handler that raises is logged and the remaining handlers still run.
        """
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        is_quiet = event_type in _QUIET_EVENT_TYPES

        if handlers is None:
            if not is_quiet:
                logger.debug("No handlers for event type %s", event_type.__name__)
            return

        if not is_quiet:
            logger.debug(
                "Publishing %s to %d handler(s)",
                event_type.__name__,
                len(handlers),
            )

        dead_indices: list[int] = []

        for i, handler_ref in enumerate(list(handlers)):
            handler = handler_ref.resolve()
            if handler is None:
                dead_indices.append(i)
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for i in reversed(dead_indices):
            if i < len(handlers):
                handlers.pop(i)

    def clear(self) -> None:
        """Remove all registered handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the number of handlers for ``event_type`` (or in total)."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for plain callables."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | ref | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        cls_name = type(handler.__self__).__name__
        return f"{cls_name}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "TurnStarted",
    "TurnPhaseChanged",
    "MessageAppended",
    "ToolExecuted",
    "NoticeRaised",
    "TurnCompleted",
    "TurnCanceled",
]
