"""Service layer helpers (settings persistence)."""

from .settings import PROVIDER_IDS, SecretVault, Settings, SettingsStore, redact_secret

__all__ = ["PROVIDER_IDS", "SecretVault", "Settings", "SettingsStore", "redact_secret"]
