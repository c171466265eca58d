"""Shared AI-facing value types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = ["ProviderConfig", "ContextScope"]


@dataclass(slots=True, frozen=True)
class ProviderConfig:
    """Read-only connection details for one provider call.

    Attributes:
        provider_id: Key of the adapter in the provider table.
        api_key: Credential; empty means "not configured".
        model: Vendor model identifier.
        base_url: Vendor API root the endpoint path is appended to.
        temperature: Sampling temperature for vendors that take one.
        max_tokens: Output cap for vendors that require one.
        request_timeout: Seconds before the HTTP call is abandoned.
    """

    provider_id: str
    api_key: str
    model: str
    base_url: str
    temperature: float = 0.7
    max_tokens: int = 4096
    request_timeout: float | None = 90.0

    def __repr__(self) -> str:
        masked = "set" if self.api_key else "missing"
        return (
            f"ProviderConfig(provider_id={self.provider_id!r}, model={self.model!r}, "
            f"base_url={self.base_url!r}, api_key=<{masked}>)"
        )


class ContextScope(str, Enum):
    """Breadth of document-store content attached to a turn."""

    DOCUMENT = "document"
    SUBTREE = "subtree"
    STORE = "store"

    @classmethod
    def parse(cls, value: "str | ContextScope") -> "ContextScope":
        if isinstance(value, ContextScope):
            return value
        normalized = str(value or "").strip().lower()
        aliases = {"file": cls.DOCUMENT, "folder": cls.SUBTREE, "vault": cls.STORE}
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(scope.value for scope in cls)
            raise ValueError(f"Unknown context scope '{value}' (expected one of: {choices})") from None
