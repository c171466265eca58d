"""Conversation engine: the act-then-interpret turn loop.

One user turn runs through these phases::

    IDLE -> CONTEXT_LOADING -> AWAITING_MODEL
         -> TOOL_DETECTED -> TOOL_EXECUTING -> AWAITING_FOLLOW_UP -> IDLE
         -> NO_TOOL -> IDLE

The engine owns the conversation history. Instructions and context are
rebuilt and prepended on every model call and never stored in history. At
most one tool round trip happens per user turn; the follow-up reply is not
scanned for another tool call.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Protocol, Sequence

from ...chat.message_model import ChatMessage, ConversationHistory
from ...ui.events import (
    Event,
    EventBus,
    MessageAppended,
    NoticeRaised,
    ToolExecuted,
    TurnCanceled,
    TurnCompleted,
    TurnPhaseChanged,
    TurnStarted,
)
from ..ai_types import ContextScope
from ..context import ContextAssembler
from ..prompts import build_system_prompt, format_context_message, format_tool_output
from .tool_call_parser import ToolCallParseError, ToolInvocation, find_tool_call
from .tool_dispatcher import DispatchResult, ToolDispatcher

LOGGER = logging.getLogger(__name__)


class ChatBackend(Protocol):
    """Anything that turns a message list into reply text without raising."""

    def generate(self, messages: Sequence[ChatMessage]) -> Awaitable[str]:
        ...


class TurnPhase(Enum):
    """Phase of the turn currently being processed."""

    IDLE = "idle"
    CONTEXT_LOADING = "context_loading"
    AWAITING_MODEL = "awaiting_model"
    TOOL_DETECTED = "tool_detected"
    TOOL_EXECUTING = "tool_executing"
    AWAITING_FOLLOW_UP = "awaiting_follow_up"
    NO_TOOL = "no_tool"


_TRANSITIONS: dict[TurnPhase, frozenset[TurnPhase]] = {
    TurnPhase.IDLE: frozenset({TurnPhase.CONTEXT_LOADING}),
    TurnPhase.CONTEXT_LOADING: frozenset({TurnPhase.AWAITING_MODEL}),
    TurnPhase.AWAITING_MODEL: frozenset({TurnPhase.TOOL_DETECTED, TurnPhase.NO_TOOL}),
    TurnPhase.TOOL_DETECTED: frozenset({TurnPhase.TOOL_EXECUTING}),
    TurnPhase.TOOL_EXECUTING: frozenset({TurnPhase.AWAITING_FOLLOW_UP}),
    TurnPhase.AWAITING_FOLLOW_UP: frozenset({TurnPhase.IDLE}),
    TurnPhase.NO_TOOL: frozenset({TurnPhase.IDLE}),
}


@dataclass(slots=True, frozen=True)
class TurnResult:
    """Everything a front end needs to project one finished turn.

    Attributes:
        turn_id: Identifier of the turn.
        history: Snapshot of the full history after the turn.
        events: Events emitted during the turn, in order.
        reply: Final assistant text appended by the turn.
        context_text: Context text attached to the model calls.
        invocation: Tool call detected in the first reply, if any.
        tool_result: Dispatcher outcome when a tool ran.
    """

    turn_id: str
    history: tuple[ChatMessage, ...]
    events: tuple[Event, ...]
    reply: str
    context_text: str
    invocation: ToolInvocation | None = None
    tool_result: DispatchResult | None = None

    @property
    def used_tool(self) -> bool:
        return self.tool_result is not None


@dataclass(slots=True)
class _TurnState:
    turn_id: str
    phase: TurnPhase = TurnPhase.IDLE
    events: list[Event] = field(default_factory=list)


class ConversationEngine:
    """Own the history and run user turns through the tool loop.

    The engine does not serialize turns; front ends check :attr:`is_busy`
    and hold input while a turn is in flight.
    """

    def __init__(
        self,
        chat: ChatBackend,
        context: ContextAssembler,
        dispatcher: ToolDispatcher,
        *,
        history: ConversationHistory | None = None,
        system_prompt: str | None = None,
        default_scope: ContextScope | str = ContextScope.SUBTREE,
        event_bus: EventBus | None = None,
        model_timeout: float | None = None,
    ) -> None:
        self._chat = chat
        self._context = context
        self._dispatcher = dispatcher
        self._history = history if history is not None else ConversationHistory()
        self._system_prompt = system_prompt or build_system_prompt(dispatcher.registry)
        self._default_scope = ContextScope.parse(default_scope)
        self._event_bus = event_bus
        self._model_timeout = model_timeout
        self._turn_ids = itertools.count(1)
        self._active: list[_TurnState] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def history(self) -> ConversationHistory:
        return self._history

    @property
    def phase(self) -> TurnPhase:
        """Phase of the most recently started turn still in flight."""
        return self._active[-1].phase if self._active else TurnPhase.IDLE

    @property
    def is_busy(self) -> bool:
        return bool(self._active)

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def default_scope(self) -> ContextScope:
        return self._default_scope

    def raise_notice(self, message: str) -> None:
        """Publish an out-of-band notice, recording it on the current turn."""

        self._emit(self._active[-1] if self._active else None, NoticeRaised(message=message))

    def build_outbound(self, context_text: str) -> list[ChatMessage]:
        """Return ``[instructions, context, *history]`` for a model call."""

        return [
            ChatMessage.system(self._system_prompt),
            ChatMessage.system(format_context_message(context_text)),
            *self._history.snapshot(),
        ]

    async def handle_user_turn(
        self,
        text: str,
        scope: ContextScope | str | None = None,
        current_location: str | None = None,
    ) -> TurnResult:
        """Run one user turn to completion and return its projection.

        Every failure inside the turn ends up as text in the history. The
        only exception that leaves this method is ``asyncio.CancelledError``
        when the surrounding task is cancelled.
        """

        if self._active:
            LOGGER.warning("Starting a turn while %s is still in flight", self._active[-1].turn_id)
        scope = ContextScope.parse(scope) if scope is not None else self._default_scope
        turn = _TurnState(turn_id=f"turn-{next(self._turn_ids)}")
        self._active.append(turn)
        LOGGER.info("Starting %s (scope=%s)", turn.turn_id, scope.value)
        try:
            self._emit(turn, TurnStarted(turn_id=turn.turn_id, prompt=text, scope=scope.value))
            self._append(turn, ChatMessage.user(text))

            self._set_phase(turn, TurnPhase.CONTEXT_LOADING)
            context_text = await self._load_context(scope, current_location)

            self._set_phase(turn, TurnPhase.AWAITING_MODEL)
            reply = await self._generate(context_text)

            try:
                invocation = find_tool_call(reply)
            except ToolCallParseError as exc:
                LOGGER.warning("Model emitted an unparseable tool block: %s", exc)
                self._set_phase(turn, TurnPhase.NO_TOOL)
                final = self._append(turn, ChatMessage.assistant(f"Error parsing tool JSON: {exc}\nRaw: {reply}"))
                return self._finish(turn, final.content, context_text)

            if invocation is None:
                self._set_phase(turn, TurnPhase.NO_TOOL)
                self._append(turn, ChatMessage.assistant(reply))
                return self._finish(turn, reply, context_text)

            self._set_phase(turn, TurnPhase.TOOL_DETECTED)
            self._append(turn, ChatMessage.assistant(reply))

            self._set_phase(turn, TurnPhase.TOOL_EXECUTING)
            tool_result = await self._dispatcher.dispatch(
                invocation.tool, invocation.parameters, request_id=turn.turn_id
            )
            self._emit(
                turn,
                ToolExecuted(
                    turn_id=turn.turn_id,
                    tool_name=invocation.tool,
                    arguments=invocation.parameters,
                    result=tool_result.text,
                    success=tool_result.success,
                    duration_ms=tool_result.execution_time_ms,
                ),
            )
            self._append(turn, ChatMessage.user(format_tool_output(invocation.tool, tool_result.text)))

            self._set_phase(turn, TurnPhase.AWAITING_FOLLOW_UP)
            follow_up = await self._generate(context_text)
            self._append(turn, ChatMessage.assistant(follow_up))
            return self._finish(turn, follow_up, context_text, invocation=invocation, tool_result=tool_result)
        except asyncio.CancelledError:
            LOGGER.info("%s canceled during %s", turn.turn_id, turn.phase.value)
            self._emit(turn, TurnCanceled(turn_id=turn.turn_id, phase=turn.phase.value))
            turn.phase = TurnPhase.IDLE
            raise
        finally:
            self._active.remove(turn)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_context(self, scope: ContextScope, current_location: str | None) -> str:
        try:
            return await self._context.assemble(scope, current_location)
        except Exception as exc:
            LOGGER.exception("Failed to assemble %s context", scope.value)
            return f"Error reading context: {exc}"

    async def _generate(self, context_text: str) -> str:
        outbound = self.build_outbound(context_text)
        try:
            if self._model_timeout is None:
                return await self._chat.generate(outbound)
            return await asyncio.wait_for(self._chat.generate(outbound), timeout=self._model_timeout)
        except asyncio.TimeoutError:
            LOGGER.error("Model call exceeded %ss", self._model_timeout)
            return f"Error: No reply from the model within {self._model_timeout:g}s."
        except Exception as exc:
            LOGGER.exception("Chat backend raised")
            return f"Error: {exc}"

    def _append(self, turn: _TurnState, message: ChatMessage) -> ChatMessage:
        self._history.append(message)
        self._emit(
            turn,
            MessageAppended(
                turn_id=turn.turn_id,
                role=message.role,
                content=message.content,
                index=len(self._history) - 1,
            ),
        )
        return message

    def _set_phase(self, turn: _TurnState, phase: TurnPhase) -> None:
        if phase not in _TRANSITIONS[turn.phase]:
            raise RuntimeError(f"Invalid turn phase transition {turn.phase.value} -> {phase.value}")
        turn.phase = phase
        self._emit(turn, TurnPhaseChanged(turn_id=turn.turn_id, phase=phase.value))

    def _finish(
        self,
        turn: _TurnState,
        reply: str,
        context_text: str,
        *,
        invocation: ToolInvocation | None = None,
        tool_result: DispatchResult | None = None,
    ) -> TurnResult:
        self._set_phase(turn, TurnPhase.IDLE)
        tool_name = invocation.tool if invocation else None
        self._emit(turn, TurnCompleted(turn_id=turn.turn_id, reply=reply, tool_name=tool_name))
        LOGGER.info("Finished %s (tool=%s)", turn.turn_id, tool_name or "-")
        return TurnResult(
            turn_id=turn.turn_id,
            history=self._history.snapshot(),
            events=tuple(turn.events),
            reply=reply,
            context_text=context_text,
            invocation=invocation,
            tool_result=tool_result,
        )

    def _emit(self, turn: _TurnState | None, event: Event) -> None:
        if turn is not None:
            turn.events.append(event)
        if self._event_bus is not None:
            self._event_bus.publish(event)


__all__ = ["ChatBackend", "ConversationEngine", "TurnPhase", "TurnResult"]
