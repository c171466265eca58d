"""Turn orchestration: tool-call detection, dispatch and the conversation loop."""

from .conversation import ChatBackend, ConversationEngine, TurnPhase, TurnResult
from .tool_call_parser import ToolCallParseError, ToolInvocation, find_tool_call
from .tool_dispatcher import DispatchResult, ToolDispatcher

__all__ = [
    "ChatBackend",
    "ConversationEngine",
    "TurnPhase",
    "TurnResult",
    "ToolCallParseError",
    "ToolInvocation",
    "find_tool_call",
    "DispatchResult",
    "ToolDispatcher",
]
