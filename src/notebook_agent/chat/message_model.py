"""Chat message and conversation history models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, Literal


def _utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""

    return datetime.now(timezone.utc)

ChatRole = Literal["user", "assistant", "system"]
CHAT_ROLES: tuple[ChatRole, ...] = ("system", "user", "assistant")


@dataclass(slots=True, frozen=True)
class ChatMessage:
    """Single provider-agnostic chat message."""

    role: ChatRole
    content: str
    created_at: datetime = field(default_factory=_utcnow, compare=False)

    def __post_init__(self) -> None:
        if self.role not in CHAT_ROLES:
            raise ValueError(f"Unsupported chat role: {self.role!r}")

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls("system", content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls("user", content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls("assistant", content)

    def to_payload(self) -> Dict[str, str]:
        """Return the ``{role, content}`` mapping most providers accept."""

        return {"role": self.role, "content": self.content}


class ConversationHistory:
    """Ordered, append-only record of a chat session.

    Entries are never reordered or removed; the only mutation is
    :meth:`append`. Readers receive immutable snapshots.
    """

    __slots__ = ("_messages",)

    def __init__(self, messages: Iterable[ChatMessage] | None = None) -> None:
        self._messages: list[ChatMessage] = list(messages or ())

    def append(self, message: ChatMessage) -> ChatMessage:
        self._messages.append(message)
        return message

    def snapshot(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def as_payload(self) -> list[Dict[str, str]]:
        return [message.to_payload() for message in self._messages]

    @property
    def last(self) -> ChatMessage | None:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> ChatMessage:
        return self._messages[index]

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"ConversationHistory(messages={len(self._messages)})"


__all__ = ["ChatRole", "CHAT_ROLES", "ChatMessage", "ConversationHistory"]
