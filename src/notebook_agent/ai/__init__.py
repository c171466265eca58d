"""Provider adapters, chat client, context assembly and tool orchestration."""

from .ai_types import ContextScope, ProviderConfig
from .errors import ConfigError, ProviderAdapterError, ProviderError

__all__ = ["ContextScope", "ProviderConfig", "ConfigError", "ProviderAdapterError", "ProviderError"]
