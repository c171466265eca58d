"""Tool dispatcher for the conversation loop.

Routes a parsed tool call to its registered implementation, validates the
parameters against the tool's JSON Schema, and renders every outcome as
text. The dispatcher sits inside an automated loop that must always have
something to feed back to the model, so nothing raised by a tool or by the
document store escapes :meth:`ToolDispatcher.execute`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol

from jsonschema import Draft7Validator, ValidationError
from jsonschema.exceptions import best_match

from ...documents.store import DocumentStore
from ..tools.base import ToolContext, ToolResult
from ..tools.errors import ErrorCode, ToolNotFoundError
from ..tools.tool_registry import ToolRegistry, ToolSchema

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Dispatch Result
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class DispatchResult:
    """Outcome of one dispatch.

    Attributes:
        tool_name: Name the model used (may be an alias).
        success: Whether the tool completed.
        text: Human-readable outcome fed back to the model.
        error_code: Machine-readable failure code, if any.
        execution_time_ms: Wall time of the dispatch.
    """

    tool_name: str
    success: bool
    text: str
    error_code: str | None = None
    execution_time_ms: float = 0.0


class DispatchListener(Protocol):
    """Callback protocol for dispatch events."""

    def on_tool_start(self, tool_name: str, arguments: Any) -> None:
        ...

    def on_tool_complete(self, result: DispatchResult) -> None:
        ...


# -----------------------------------------------------------------------------
# Tool Dispatcher
# -----------------------------------------------------------------------------


class ToolDispatcher:
    """Dispatch tool calls against a document store.

    Example:
        dispatcher = ToolDispatcher(register_builtin_tools(), store)
        text = await dispatcher.execute("list_files", {"path": ""})
    """

    def __init__(
        self,
        registry: ToolRegistry,
        store: DocumentStore,
        *,
        document_extension: str = ".md",
        notifier: Callable[[str], None] | None = None,
        listener: DispatchListener | None = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._document_extension = document_extension
        self._notifier = notifier
        self._listener = listener
        self._validators: dict[str, Draft7Validator] = {}

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def set_listener(self, listener: DispatchListener | None) -> None:
        self._listener = listener

    def set_notifier(self, notifier: Callable[[str], None] | None) -> None:
        self._notifier = notifier

    async def execute(self, name: str, parameters: Any) -> str:
        """Run ``name`` with ``parameters`` and return the outcome as text."""

        result = await self.dispatch(name, parameters)
        return result.text

    async def dispatch(self, name: str, parameters: Any, *, request_id: str | None = None) -> DispatchResult:
        """Run a tool call and return the structured outcome."""

        start_time = time.perf_counter()
        LOGGER.info("Executing tool %s", name)
        self._notify_start(name, parameters)

        registration = self._registry.get_registration(name)
        if registration is None:
            error = ToolNotFoundError(name)
            result = self._finish(name, False, error.message, error.error_code, start_time)
            LOGGER.warning("Model requested unknown tool %r", name)
            return self._notify_complete(result)

        parameters = _drop_null_optionals(registration.schema, parameters)
        detail = self._validate(registration.name, registration.schema.to_json_schema(), parameters)
        if detail is not None:
            text = f"Error: Invalid parameters for '{name}': {detail}"
            result = self._finish(name, False, text, ErrorCode.INVALID_PARAMETER, start_time)
            return self._notify_complete(result)

        context = ToolContext(
            store=self._store,
            document_extension=self._document_extension,
            request_id=request_id,
            notifier=self._notifier,
        )
        try:
            outcome: ToolResult = await registration.impl.run(context, parameters)
        except Exception as exc:
            LOGGER.exception("Tool %s raised outside its error boundary", name)
            text = f"Error executing '{name}': {exc or type(exc).__name__}"
            result = self._finish(name, False, text, ErrorCode.INTERNAL_ERROR, start_time)
            return self._notify_complete(result)

        result = self._finish(name, outcome.success, self._render(name, outcome), outcome.error_code, start_time)
        return self._notify_complete(result)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(self, canonical: str, schema: Mapping[str, Any], parameters: Any) -> str | None:
        if not isinstance(parameters, Mapping):
            return "parameters must be an object"
        validator = self._validators.get(canonical)
        if validator is None:
            validator = Draft7Validator(schema)
            self._validators[canonical] = validator
        error = best_match(validator.iter_errors(dict(parameters)))
        if error is None:
            return None
        return _format_validation_error(error)

    @staticmethod
    def _render(name: str, outcome: ToolResult) -> str:
        if outcome.success:
            return outcome.message
        if outcome.error_code == ErrorCode.INVALID_PARAMETER:
            return f"Error: Invalid parameters for '{name}': {outcome.message}"
        if outcome.error_code == ErrorCode.INTERNAL_ERROR:
            return f"Error executing '{name}': {outcome.message}"
        return outcome.message

    @staticmethod
    def _finish(name: str, success: bool, text: str, error_code: str | None, start_time: float) -> DispatchResult:
        elapsed = (time.perf_counter() - start_time) * 1000.0
        return DispatchResult(
            tool_name=name,
            success=success,
            text=text,
            error_code=error_code,
            execution_time_ms=elapsed,
        )

    def _notify_start(self, name: str, parameters: Any) -> None:
        if self._listener is None:
            return
        try:
            self._listener.on_tool_start(name, parameters)
        except Exception:
            LOGGER.debug("Listener on_tool_start failed", exc_info=True)

    def _notify_complete(self, result: DispatchResult) -> DispatchResult:
        if self._listener is not None:
            try:
                self._listener.on_tool_complete(result)
            except Exception:
                LOGGER.debug("Listener on_tool_complete failed", exc_info=True)
        return result


def _drop_null_optionals(schema: ToolSchema, parameters: Any) -> Any:
    """Treat an explicit null for an optional parameter as an omitted one."""
    if not isinstance(parameters, Mapping):
        return parameters
    optional = {param.name for param in schema.parameters if not param.required}
    return {key: value for key, value in parameters.items() if value is not None or key not in optional}


def _format_validation_error(error: ValidationError) -> str:
    path = ".".join(str(part) for part in error.path)
    if path:
        return f"{path}: {error.message}"
    return error.message


__all__ = ["DispatchListener", "DispatchResult", "ToolDispatcher"]
