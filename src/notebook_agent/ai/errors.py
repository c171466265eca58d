"""Errors raised by provider adapters.

Adapters raise these; :class:`~notebook_agent.ai.client.ChatClient` turns
them into reply text so they never reach the conversation loop.
"""

from __future__ import annotations

__all__ = ["ProviderAdapterError", "ConfigError", "ProviderError"]


class ProviderAdapterError(Exception):
    """Base class for adapter failures."""

    def __init__(self, provider_id: str, detail: str) -> None:
        super().__init__(detail)
        self.provider_id = provider_id
        self.detail = detail

    def __str__(self) -> str:
        return f"[{self.provider_id}] {self.detail}"


class ConfigError(ProviderAdapterError):
    """Missing or unusable credentials, detected before any network call."""

    def __init__(self, provider_id: str, detail: str = "API key is missing") -> None:
        super().__init__(provider_id, detail)


class ProviderError(ProviderAdapterError):
    """Non-success status, transport failure, or malformed vendor response."""

    def __init__(self, provider_id: str, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(provider_id, detail)
        self.status_code = status_code
