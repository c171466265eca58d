"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test
files (``from helpers import ScriptedChatClient``).
"""

from __future__ import annotations

import asyncio
import json
from typing import Iterable, Sequence

from notebook_agent.chat.message_model import ChatMessage


class ScriptedChatClient:
    """Chat backend stub that returns canned replies in order.

    Every outbound message list is recorded in ``calls`` so tests can assert
    exactly what the engine sent to the model.

    Example:
        chat = ScriptedChatClient(["Hello!"])
        engine = ConversationEngine(chat, context, dispatcher)
    """

    def __init__(self, replies: Iterable[str] = ()) -> None:
        self._replies = list(replies)
        self.calls: list[list[ChatMessage]] = []

    async def generate(self, messages: Sequence[ChatMessage]) -> str:
        self.calls.append(list(messages))
        if not self._replies:
            raise AssertionError("ScriptedChatClient ran out of replies")
        return self._replies.pop(0)


class BlockingChatClient:
    """Chat backend stub that waits until released; used for cancellation tests."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls: list[list[ChatMessage]] = []

    async def generate(self, messages: Sequence[ChatMessage]) -> str:
        self.calls.append(list(messages))
        self.started.set()
        await self.release.wait()
        return "released"


class RaisingChatClient:
    """Chat backend stub that raises, to check the engine's error boundary."""

    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    async def generate(self, messages: Sequence[ChatMessage]) -> str:
        raise self._exc


def tool_block(tool: str, **parameters: object) -> str:
    """Return a fenced JSON tool call as a model would emit it."""

    body = json.dumps({"tool": tool, "parameters": parameters}, indent=2)
    return f"```json\n{body}\n```"
