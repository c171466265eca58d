"""Per-vendor request/response adapters.

Each vendor is a closed variant in :data:`PROVIDERS`: a pure ``encode_*``
function that turns the universal message list into the vendor body, a pure
``decode_*`` function that pulls the first text reply out of the vendor
envelope, and a ``send_*`` coroutine that performs exactly one POST. Adapters
keep no state between calls; the HTTP client is lent to them by
:class:`~notebook_agent.ai.client.ChatClient`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Sequence

import httpx
from openai import APIConnectionError, APIError, APIStatusError, APITimeoutError, AsyncOpenAI

from ..chat.message_model import ChatMessage
from .ai_types import ProviderConfig
from .errors import ConfigError, ProviderError

__all__ = [
    "ProviderAdapter",
    "PROVIDERS",
    "get_adapter",
    "split_system",
    "encode_openai",
    "decode_openai",
    "encode_anthropic",
    "decode_anthropic",
    "encode_gemini",
    "decode_gemini",
    "send_openai",
    "send_anthropic",
    "send_gemini",
    "ANTHROPIC_VERSION",
]

LOGGER = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
_SYSTEM_SEPARATOR = "\n\n"
_GEMINI_ROLES: Mapping[str, str] = MappingProxyType({"user": "user", "assistant": "model"})
_ERROR_BODY_LIMIT = 300

SendFn = Callable[[Sequence[ChatMessage], ProviderConfig, httpx.AsyncClient], Awaitable[str]]


@dataclass(slots=True, frozen=True)
class ProviderAdapter:
    """One entry of the provider dispatch table."""

    provider_id: str
    display_name: str
    send: SendFn


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def split_system(messages: Sequence[ChatMessage]) -> tuple[str, List[ChatMessage]]:
    """Return ``(system_text, conversation)`` for vendors with a top-level system field.

    System contents are joined by one blank line in their original order; the
    remaining messages keep their relative order.
    """

    system_parts = [message.content for message in messages if message.role == "system"]
    conversation = [message for message in messages if message.role != "system"]
    return _SYSTEM_SEPARATOR.join(system_parts), conversation


def _require_key(config: ProviderConfig) -> None:
    if not (config.api_key or "").strip():
        raise ConfigError(config.provider_id)


def _require_text(provider_id: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ProviderError(provider_id, "Malformed response: reply text is missing")
    return value


def _endpoint(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _error_detail(response: httpx.Response) -> str:
    """Extract the vendor's error message, falling back to the raw body."""

    try:
        payload = response.json()
    except ValueError:
        payload = None
    message = None
    if isinstance(payload, Mapping):
        error = payload.get("error")
        if isinstance(error, Mapping):
            message = error.get("message")
        elif isinstance(error, str):
            message = error
    if not message:
        message = response.text[:_ERROR_BODY_LIMIT] or response.reason_phrase
    return f"HTTP {response.status_code}: {message}"


async def _post_json(
    provider_id: str,
    http_client: httpx.AsyncClient,
    url: str,
    body: Mapping[str, Any],
    *,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Any:
    try:
        response = await http_client.post(
            url,
            json=dict(body),
            headers=dict(headers or {}),
            params=dict(params or {}),
            timeout=timeout,
        )
    except httpx.TimeoutException as exc:
        raise ProviderError(provider_id, f"Request timed out after {timeout}s") from exc
    except httpx.HTTPError as exc:
        raise ProviderError(provider_id, f"Transport failure: {exc or type(exc).__name__}") from exc
    if response.is_error:
        raise ProviderError(provider_id, _error_detail(response), status_code=response.status_code)
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(
            provider_id, "Malformed response: body is not JSON", status_code=response.status_code
        ) from exc


# ---------------------------------------------------------------------------
# OpenAI (chat completions)
# ---------------------------------------------------------------------------


def encode_openai(messages: Sequence[ChatMessage], config: ProviderConfig) -> Dict[str, Any]:
    return {
        "model": config.model,
        "messages": [message.to_payload() for message in messages],
        "temperature": config.temperature,
    }


def decode_openai(payload: Any) -> str:
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError("openai", f"Malformed response: {exc!r}") from exc
    return _require_text("openai", content)


async def send_openai(
    messages: Sequence[ChatMessage],
    config: ProviderConfig,
    http_client: httpx.AsyncClient,
) -> str:
    """Send through the ``openai`` SDK with SDK-level retries disabled."""

    _require_key(config)
    client = AsyncOpenAI(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.request_timeout,
        max_retries=0,
        http_client=http_client,
    )
    body = encode_openai(messages, config)
    try:
        completion = await client.chat.completions.create(**body)
    except APITimeoutError as exc:
        raise ProviderError("openai", f"Request timed out after {config.request_timeout}s") from exc
    except APIStatusError as exc:
        raise ProviderError(
            "openai", f"HTTP {exc.status_code}: {exc.message}", status_code=exc.status_code
        ) from exc
    except APIConnectionError as exc:
        raise ProviderError("openai", f"Transport failure: {exc.message}") from exc
    except APIError as exc:
        raise ProviderError("openai", f"Malformed response: {exc.message}") from exc
    return decode_openai(completion.model_dump())


# ---------------------------------------------------------------------------
# Anthropic (messages)
# ---------------------------------------------------------------------------


def encode_anthropic(messages: Sequence[ChatMessage], config: ProviderConfig) -> Dict[str, Any]:
    system_text, conversation = split_system(messages)
    return {
        "model": config.model,
        "system": system_text,
        "messages": [message.to_payload() for message in conversation],
        "max_tokens": config.max_tokens,
    }


def decode_anthropic(payload: Any) -> str:
    try:
        text = payload["content"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError("anthropic", f"Malformed response: {exc!r}") from exc
    return _require_text("anthropic", text)


async def send_anthropic(
    messages: Sequence[ChatMessage],
    config: ProviderConfig,
    http_client: httpx.AsyncClient,
) -> str:
    _require_key(config)
    headers = {
        "x-api-key": config.api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }
    payload = await _post_json(
        "anthropic",
        http_client,
        _endpoint(config.base_url, "messages"),
        encode_anthropic(messages, config),
        headers=headers,
        timeout=config.request_timeout,
    )
    return decode_anthropic(payload)


# ---------------------------------------------------------------------------
# Gemini (generateContent)
# ---------------------------------------------------------------------------


def encode_gemini(messages: Sequence[ChatMessage], config: ProviderConfig) -> Dict[str, Any]:
    system_text, conversation = split_system(messages)
    body: Dict[str, Any] = {
        "contents": [
            {"role": _GEMINI_ROLES[message.role], "parts": [{"text": message.content}]}
            for message in conversation
        ]
    }
    if system_text:
        body["systemInstruction"] = {"parts": [{"text": system_text}]}
    return body


def decode_gemini(payload: Any) -> str:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError("gemini", f"Malformed response: {exc!r}") from exc
    return _require_text("gemini", text)


async def send_gemini(
    messages: Sequence[ChatMessage],
    config: ProviderConfig,
    http_client: httpx.AsyncClient,
) -> str:
    _require_key(config)
    payload = await _post_json(
        "gemini",
        http_client,
        _endpoint(config.base_url, f"models/{config.model}:generateContent"),
        encode_gemini(messages, config),
        params={"key": config.api_key},
        timeout=config.request_timeout,
    )
    return decode_gemini(payload)


PROVIDERS: Mapping[str, ProviderAdapter] = MappingProxyType(
    {
        "openai": ProviderAdapter("openai", "OpenAI", send_openai),
        "anthropic": ProviderAdapter("anthropic", "Anthropic", send_anthropic),
        "gemini": ProviderAdapter("gemini", "Gemini", send_gemini),
    }
)


def get_adapter(provider_id: str | None) -> ProviderAdapter | None:
    """Return the adapter registered for ``provider_id`` or ``None``."""

    return PROVIDERS.get((provider_id or "").strip().lower())
