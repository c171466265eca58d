"""Console front end for the notebook agent."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

import httpx

from .ai.ai_types import ContextScope
from .ai.client import ChatClient
from .ai.context import ContextAssembler
from .ai.orchestration.conversation import ConversationEngine
from .ai.orchestration.tool_dispatcher import ToolDispatcher
from .ai.tools.tool_wiring import register_builtin_tools
from .documents.filesystem_store import FileSystemDocumentStore
from .documents.paths import PathEscapeError, normalize_path
from .documents.store import DocumentRef, DocumentStore, DocumentStoreError
from .services.settings import SECRET_FIELDS, Settings, SettingsStore, redact_secret
from .ui.events import EventBus, NoticeRaised, ToolExecuted
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)
_PROMPT = "you> "
_HELP_TEXT = (
    "Commands: /scope <document|subtree|store>, /open <path>, /open (close), "
    "/history, /help, /quit"
)


@dataclass(slots=True)
class ReplSession:
    """Mutable front-end state: the open document and the context scope."""

    scope: ContextScope
    document: str | None = None


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    """Configure structured logging for the application."""

    level = logging.DEBUG if debug else logging.INFO
    logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except (OSError, ValueError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def build_engine(
    settings: Settings,
    store: DocumentStore,
    *,
    event_bus: EventBus | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> tuple[ConversationEngine, ChatClient]:
    """Wire the chat client, context assembler, dispatcher and engine together."""

    client = ChatClient(settings, http_client=http_client)
    registry = register_builtin_tools()
    dispatcher = ToolDispatcher(registry, store, document_extension=settings.document_extension)
    context = ContextAssembler(
        store,
        limit=settings.context_file_limit,
        text_extensions=settings.text_extensions,
    )
    engine = ConversationEngine(
        client,
        context,
        dispatcher,
        default_scope=settings.default_scope,
        event_bus=event_bus,
    )
    client.set_notifier(engine.raise_notice)
    dispatcher.set_notifier(engine.raise_notice)
    return engine, client


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the `notebook-agent` console script."""

    args = _parse_cli_args(argv)

    debug = args.debug or _env_flag("NOTEBOOK_AGENT_DEBUG", default=False)
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("NOTEBOOK_AGENT_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    overrides_mapping: Dict[str, Any] | None = cli_overrides or None
    settings = load_settings(resolved_path, store=settings_store, overrides=overrides_mapping)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    try:
        default_scope = ContextScope.parse(settings.default_scope)
        scope = ContextScope.parse(args.scope) if args.scope else default_scope
        store = FileSystemDocumentStore(args.root)
    except (ValueError, DocumentStoreError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    session = ReplSession(scope=scope, document=args.document)
    try:
        asyncio.run(run_repl(settings, store, session))
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Shutdown requested by user.")


async def run_repl(
    settings: Settings,
    store: DocumentStore,
    session: ReplSession,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> None:
    """Read user lines until EOF or ``/quit``, running one turn per line."""

    source = stdin or sys.stdin
    out = stdout or sys.stdout
    bus: EventBus = EventBus()

    def on_notice(event: NoticeRaised) -> None:
        out.write(f"[notice] {event.message}\n")

    def on_tool(event: ToolExecuted) -> None:
        status = "ok" if event.success else "failed"
        out.write(f"[tool] {event.tool_name} ({status})\n")

    bus.subscribe(NoticeRaised, on_notice)
    bus.subscribe(ToolExecuted, on_tool)

    engine, client = build_engine(settings, store, event_bus=bus, http_client=http_client)
    out.write(f"Notebook agent ({settings.active_provider}). {_HELP_TEXT}\n")
    try:
        while True:
            out.write(_PROMPT)
            out.flush()
            line = await asyncio.to_thread(source.readline)
            if not line:
                break
            text = line.strip()
            if not text:
                continue
            if text.startswith("/"):
                if not await handle_command(text, session, engine, store, out):
                    break
                continue
            result = await engine.handle_user_turn(text, session.scope, session.document)
            out.write(f"assistant> {result.reply}\n")
    finally:
        await client.aclose()


async def handle_command(
    text: str,
    session: ReplSession,
    engine: ConversationEngine,
    store: DocumentStore,
    out: TextIO,
) -> bool:
    """Apply a slash command; returns ``False`` when the loop should stop."""

    command, _, argument = text.partition(" ")
    argument = argument.strip()
    command = command.lower()

    if command in {"/quit", "/exit"}:
        return False
    if command == "/help":
        out.write(f"{_HELP_TEXT}\n")
    elif command == "/scope":
        if not argument:
            out.write(f"Scope: {session.scope.value}\n")
        else:
            try:
                session.scope = ContextScope.parse(argument)
            except ValueError as exc:
                out.write(f"Error: {exc}\n")
            else:
                out.write(f"Scope set to {session.scope.value}\n")
    elif command == "/open":
        if not argument:
            session.document = None
            out.write("No document open\n")
        else:
            await _open_document(argument, session, store, out)
    elif command == "/history":
        for index, message in enumerate(engine.history):
            out.write(f"[{index}] {message.role}: {message.content}\n")
    else:
        out.write(f"Unknown command {command}. {_HELP_TEXT}\n")
    return True


async def _open_document(argument: str, session: ReplSession, store: DocumentStore, out: TextIO) -> None:
    try:
        path = normalize_path(argument)
    except PathEscapeError as exc:
        out.write(f"Error: {exc}\n")
        return
    if not isinstance(await store.resolve(path), DocumentRef):
        out.write(f"Error: Document '{path}' not found.\n")
        return
    session.document = path
    out.write(f"Opened {path}\n")


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="notebook-agent",
        add_help=True,
        description="Chat with an LLM that can read and edit a folder of notes.",
    )
    parser.add_argument(
        "--root",
        metavar="DIR",
        default=".",
        help="Folder exposed to the agent as its document store (default: current directory).",
    )
    parser.add_argument(
        "--document",
        metavar="PATH",
        help="Store-relative path of the document to treat as open.",
    )
    parser.add_argument(
        "--scope",
        choices=[scope.value for scope in ContextScope],
        help="Context scope attached to each turn (default: settings.default_scope).",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload (with secrets redacted) and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.notebook_agent/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings before launch (repeatable).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if target is str or target is Any:
        return normalized
    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is float:
        return float(normalized)
    if target is tuple:
        return tuple(part.strip() for part in normalized.split(",") if part.strip())
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    if origin is tuple:
        return tuple
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if not args:
        return origin
    return args[0]


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    payload = asdict(settings)
    for field_name in SECRET_FIELDS:
        value = payload.get(field_name, "")
        if isinstance(value, str):
            payload[field_name] = redact_secret(value)
    payload["text_extensions"] = list(settings.text_extensions)
    metadata = {
        "path": str(store.path),
        "secret_backend": store.vault.strategy,
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    output = {"settings": payload, "meta": metadata}
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("NOTEBOOK_AGENT_"))


__all__ = ["ReplSession", "build_engine", "configure_logging", "handle_command", "load_settings", "main", "run_repl"]
