"""Provider-agnostic chat client.

:class:`ChatClient` is the single seam between the conversation loop and the
vendor adapters. Its contract is that :meth:`ChatClient.generate` always
returns text: configuration and provider failures are rendered as reply
strings so a failed call still becomes an appendable assistant message.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Mapping, Sequence

import httpx

from ..chat.message_model import ChatMessage
from ..services.settings import Settings
from .errors import ConfigError, ProviderError
from .providers import PROVIDERS, ProviderAdapter

__all__ = ["ChatClient", "UNKNOWN_PROVIDER_REPLY", "Notifier"]

LOGGER = logging.getLogger(__name__)

UNKNOWN_PROVIDER_REPLY = "Error: Unknown provider selected."

Notifier = Callable[[str], None]


class ChatClient:
    """Select the active adapter from settings and forward chat requests."""

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
        adapters: Mapping[str, ProviderAdapter] | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._settings = settings
        self._adapters = adapters if adapters is not None else PROVIDERS
        self._notifier = notifier
        self._http_client = http_client
        self._owns_http_client = http_client is None

    @property
    def settings(self) -> Settings:
        return self._settings

    def set_notifier(self, notifier: Notifier | None) -> None:
        self._notifier = notifier

    @property
    def active_provider(self) -> str:
        return (self._settings.active_provider or "").strip().lower()

    async def generate(self, messages: Sequence[ChatMessage]) -> str:
        """Send ``messages`` to the active provider and return the reply text."""

        adapter = self._adapters.get(self.active_provider)
        if adapter is None:
            LOGGER.warning("Unknown provider selected: %r", self._settings.active_provider)
            return UNKNOWN_PROVIDER_REPLY

        config = self._settings.provider_config(adapter.provider_id)
        LOGGER.debug(
            "Sending %d message(s) to %s (%s)", len(messages), adapter.display_name, config.model
        )
        if self._settings.debug_logging:
            self._log_prompt_payload(messages)

        try:
            reply = await adapter.send(messages, config, self._get_http_client())
        except ConfigError:
            LOGGER.info("%s API key is missing", adapter.display_name)
            self._notify(f"{adapter.display_name} API Key is missing.")
            return f"Please provide a {adapter.display_name} API Key in settings."
        except ProviderError as exc:
            LOGGER.error("Error calling %s: %s", adapter.display_name, exc.detail)
            return f"Error calling {adapter.display_name}: {exc.detail}"

        LOGGER.debug("Received %d chars from %s", len(reply), adapter.display_name)
        return reply

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._settings.request_timeout)
        return self._http_client

    def _notify(self, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier(message)
        except Exception:  # pragma: no cover - notifier belongs to the host
            LOGGER.debug("Notifier raised while reporting %r", message, exc_info=True)

    def _log_prompt_payload(self, messages: Sequence[ChatMessage]) -> None:
        payload = [message.to_payload() for message in messages]
        LOGGER.debug("Chat prompt payload:\n%s", json.dumps(payload, ensure_ascii=False, indent=2))

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""

        client = self._http_client
        if client is None or not self._owns_http_client:
            return
        self._http_client = None
        await client.aclose()
