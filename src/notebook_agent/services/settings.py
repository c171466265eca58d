"""Settings dataclasses and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from cryptography.fernet import Fernet, InvalidToken

from ..ai.ai_types import ProviderConfig

__all__ = [
    "Settings",
    "SettingsStore",
    "SecretVault",
    "PROVIDER_IDS",
    "SECRET_FIELDS",
    "apply_overrides",
    "redact_secret",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".notebook_agent"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
PROVIDER_IDS: tuple[str, ...] = ("openai", "anthropic", "gemini")
SECRET_FIELDS: tuple[str, ...] = tuple(f"{provider}_api_key" for provider in PROVIDER_IDS)
_CIPHERTEXT_SUFFIX = "_ciphertext"
_ENV_OVERRIDES: Mapping[str, str] = {
    "NOTEBOOK_AGENT_PROVIDER": "active_provider",
    "NOTEBOOK_AGENT_OPENAI_API_KEY": "openai_api_key",
    "NOTEBOOK_AGENT_OPENAI_MODEL": "openai_model",
    "NOTEBOOK_AGENT_OPENAI_BASE_URL": "openai_base_url",
    "NOTEBOOK_AGENT_ANTHROPIC_API_KEY": "anthropic_api_key",
    "NOTEBOOK_AGENT_ANTHROPIC_MODEL": "anthropic_model",
    "NOTEBOOK_AGENT_ANTHROPIC_BASE_URL": "anthropic_base_url",
    "NOTEBOOK_AGENT_GEMINI_API_KEY": "gemini_api_key",
    "NOTEBOOK_AGENT_GEMINI_MODEL": "gemini_model",
    "NOTEBOOK_AGENT_GEMINI_BASE_URL": "gemini_base_url",
    "NOTEBOOK_AGENT_DEFAULT_SCOPE": "default_scope",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "NOTEBOOK_AGENT_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "NOTEBOOK_AGENT_REQUEST_TIMEOUT": "request_timeout",
    "NOTEBOOK_AGENT_TEMPERATURE": "temperature",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "NOTEBOOK_AGENT_MAX_TOKENS": "max_tokens",
    "NOTEBOOK_AGENT_CONTEXT_FILE_LIMIT": "context_file_limit",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


@dataclass(slots=True, frozen=True)
class Settings:
    """User-configurable settings, passed explicitly and never mutated."""

    active_provider: str = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_base_url: str = "https://api.openai.com/v1"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-sonnet-20240620"
    anthropic_base_url: str = "https://api.anthropic.com/v1"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-pro"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.7
    max_tokens: int = 4096
    request_timeout: float = 90.0
    context_file_limit: int = 50
    document_extension: str = ".md"
    text_extensions: tuple[str, ...] = (".md",)
    default_scope: str = "subtree"
    debug_logging: bool = False

    def provider_config(self, provider_id: str | None = None) -> ProviderConfig:
        """Return the connection details for ``provider_id`` (default: active)."""

        key = (provider_id or self.active_provider or "").strip().lower()
        if key not in PROVIDER_IDS:
            raise ValueError(f"Unknown provider '{provider_id or self.active_provider}'")
        return ProviderConfig(
            provider_id=key,
            api_key=(getattr(self, f"{key}_api_key") or "").strip(),
            model=getattr(self, f"{key}_model"),
            base_url=getattr(self, f"{key}_base_url"),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            request_timeout=self.request_timeout,
        )


class FernetSecretProvider:
    """Symmetric Fernet encryption with the key stored on disk."""

    name = "fernet"

    def __init__(self, key_path: Path | None = None) -> None:
        self._key_path = key_path or (_SETTINGS_DIR / "settings.key")
        self._fernet: Fernet | None = None

    def encrypt(self, secret: str) -> str:
        token = self._get_fernet().encrypt(secret.encode("utf-8"))
        return token.decode("ascii")

    def decrypt(self, token: str) -> str:
        raw = self._get_fernet().decrypt(token.encode("ascii"))
        return raw.decode("utf-8")

    def _get_fernet(self) -> Fernet:
        if self._fernet is None:
            key = self._load_or_create_key()
            self._fernet = Fernet(key)
        return self._fernet

    def _load_or_create_key(self) -> bytes:
        path = self._key_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            return path.read_bytes().strip()
        key = Fernet.generate_key()
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_bytes(key)
        if os.name != "nt":  # pragma: no cover - depends on OS
            os.chmod(tmp_path, 0o600)
        tmp_path.replace(path)
        return key


class SecretVault:
    """Encrypts and decrypts API keys for settings persistence."""

    def __init__(self, *, key_path: Path | None = None) -> None:
        self._provider = FernetSecretProvider(key_path or (_SETTINGS_DIR / "settings.key"))

    @property
    def strategy(self) -> str:
        return self._provider.name

    def encrypt(self, secret: str) -> str:
        if not secret:
            return ""
        return f"{self._provider.name}:{self._provider.encrypt(secret)}"

    def decrypt(self, token: str | None) -> str:
        if not token:
            return ""
        prefix, _, payload = token.partition(":")
        if not payload:
            prefix, payload = self._provider.name, token
        if prefix != self._provider.name:
            raise ValueError(f"Unknown secret token prefix '{prefix}'")
        try:
            return self._provider.decrypt(payload)
        except InvalidToken as exc:
            raise ValueError("Invalid Fernet token") from exc


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None, *, vault: SecretVault | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH
        self._vault = vault or SecretVault(key_path=self._path.with_suffix(".key"))

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    @property
    def vault(self) -> SecretVault:
        return self._vault

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()
        needs_migration = False

        if payload:
            secrets: Dict[str, str] = {}
            for name in SECRET_FIELDS:
                plaintext, migrated = self._decrypt_secret(
                    name,
                    payload.pop(f"{name}{_CIPHERTEXT_SUFFIX}", None),
                    payload.pop(name, None),
                )
                needs_migration = needs_migration or migrated
                if plaintext:
                    secrets[name] = plaintext
            data = _filter_fields(payload)
            if "text_extensions" in data:
                data["text_extensions"] = _coerce_extensions(data["text_extensions"])
            try:
                settings = Settings(**data, **secrets)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings(**secrets)

        version_mismatch = bool(payload) and payload.get("version") != _SETTINGS_VERSION
        if needs_migration or version_mismatch:
            try:
                self.save(settings)
            except OSError as exc:  # pragma: no cover - read-only home directories
                LOGGER.warning("Failed to migrate settings payload: %s", exc)

        if overrides:
            settings = apply_overrides(settings, overrides, source="CLI")

        return self._apply_env_overrides(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        body = json.dumps(self._serialize(settings), indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s (provider=%s)", self._path, settings.active_provider)
        return self._path

    def _serialize(self, settings: Settings) -> Dict[str, Any]:
        data = asdict(settings)
        for name in SECRET_FIELDS:
            secret = data.pop(name, "") or ""
            if secret:
                data[f"{name}{_CIPHERTEXT_SUFFIX}"] = self._vault.encrypt(secret)
        data["text_extensions"] = list(settings.text_extensions)
        data["version"] = _SETTINGS_VERSION
        data["secret_backend"] = self._vault.strategy
        return data

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not hold a JSON object", self._path)
            return {}
        return payload

    def _decrypt_secret(
        self, name: str, ciphertext: str | None, legacy_plaintext: str | None
    ) -> tuple[str, bool]:
        if ciphertext:
            try:
                return self._vault.decrypt(ciphertext), False
            except ValueError as exc:
                LOGGER.warning("Unable to decrypt %s: %s", name, exc)
                return "", False
        if legacy_plaintext:
            LOGGER.info("Detected plaintext %s; migrating to encrypted storage.", name)
            return legacy_plaintext, True
        return "", False

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning("Environment override %s=%s is not a valid integer", env_name, value)
        for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = float(value)
            except ValueError:
                LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
        if overrides:
            settings = apply_overrides(settings, overrides, source="environment")
        return settings


def apply_overrides(
    settings: Settings,
    overrides: Mapping[str, Any],
    *,
    source: str = "runtime",
) -> Settings:
    """Return ``settings`` with known, non-``None`` fields replaced."""

    allowed = {field.name for field in fields(Settings)}
    filtered: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in allowed or value is None:
            continue
        filtered[key] = value
    if "text_extensions" in filtered:
        filtered["text_extensions"] = _coerce_extensions(filtered["text_extensions"])
    if filtered:
        LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
        settings = replace(settings, **filtered)
    return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(Settings)} - set(SECRET_FIELDS)
    return {key: value for key, value in payload.items() if key in allowed}


def _coerce_extensions(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [part for part in value.split(",")]
    extensions: list[str] = []
    for item in value or ():
        text = str(item).strip().lower()
        if not text:
            continue
        extensions.append(text if text.startswith(".") else f".{text}")
    return tuple(extensions)


def redact_secret(value: str) -> str:
    stripped = (value or "").strip()
    if not stripped:
        return ""
    if len(stripped) <= 4:
        return "*" * len(stripped)
    return f"{stripped[:2]}{'*' * (len(stripped) - 4)}{stripped[-2:]}"
