"""Base classes for document tools.

This module standardizes the tool interface: every tool declares its name,
description and parameter schema, implements :meth:`BaseTool.execute`, and is
invoked through :meth:`BaseTool.run`, which never raises.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Mapping, Sequence

from ...documents.paths import PathEscapeError, normalize_path
from ...documents.store import DocumentStore
from .errors import ErrorCode, InvalidParameterError, ToolError
from .tool_registry import ParameterSchema, ToolSchema

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolResult:
    """Standardized result container for tool execution.

    Attributes:
        success: Whether the tool completed successfully.
        message: Text describing the outcome, shown to the model.
        error_code: Machine-readable code when ``success`` is false.
        duration_ms: Execution time in milliseconds.
    """

    success: bool
    message: str
    error_code: str | None = None
    duration_ms: float = 0.0

    @classmethod
    def failure(cls, error: ToolError, *, duration_ms: float = 0.0) -> "ToolResult":
        return cls(success=False, message=error.message, error_code=error.error_code, duration_ms=duration_ms)


@dataclass(slots=True)
class ToolContext:
    """Runtime context provided to tool execution.

    Attributes:
        store: Document store the tool reads and mutates.
        document_extension: Extension appended to created documents lacking one.
        request_id: Identifier of the turn that triggered the call (for tracing).
        notifier: Optional callback for user-facing notices.
    """

    store: DocumentStore
    document_extension: str = ".md"
    request_id: str | None = None
    notifier: Callable[[str], None] | None = None

    def notify(self, message: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier(message)
        except Exception:
            LOGGER.debug("Notifier failed for %r", message, exc_info=True)


class BaseTool(ABC):
    """Abstract base class for all document tools.

    Subclasses set ``name``, ``description`` and ``parameters`` and implement
    the coroutine :meth:`execute`. Expected refusals are raised as
    :class:`ToolError`; anything else is logged and reported as an internal
    error so a store fault never escapes :meth:`run`.
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    parameters: ClassVar[Sequence[ParameterSchema]] = ()
    writes_document: ClassVar[bool] = False

    @classmethod
    def schema(cls) -> ToolSchema:
        return ToolSchema(
            name=cls.name,
            description=cls.description,
            parameters=tuple(cls.parameters),
            writes_document=cls.writes_document,
        )

    async def run(self, context: ToolContext, params: Mapping[str, Any] | None = None) -> ToolResult:
        """Execute the tool with timing and standardized error handling."""
        start_time = time.perf_counter()
        params = dict(params) if params else {}

        try:
            self.validate(params)
            message = await self.execute(context, params)
        except ToolError as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000.0
            LOGGER.info("Tool %s refused: %s", self.name, exc)
            return ToolResult.failure(exc, duration_ms=duration_ms)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000.0
            LOGGER.exception("Tool %s failed unexpectedly", self.name)
            error = ToolError(error_code=ErrorCode.INTERNAL_ERROR, message=str(exc) or type(exc).__name__)
            return ToolResult.failure(error, duration_ms=duration_ms)

        duration_ms = (time.perf_counter() - start_time) * 1000.0
        LOGGER.debug("Tool %s succeeded in %.1fms", self.name, duration_ms)
        return ToolResult(success=True, message=message, duration_ms=duration_ms)

    @abstractmethod
    async def execute(self, context: ToolContext, params: dict[str, Any]) -> str:
        """Perform the tool's work and return the success message.

        Raises:
            ToolError: For expected error conditions.
            Exception: For unexpected errors (will be wrapped).
        """
        ...

    def validate(self, params: dict[str, Any]) -> None:
        """Hook for checks beyond the JSON schema. Raise ToolError on failure."""

    @staticmethod
    def normalize_path_param(params: Mapping[str, Any], key: str = "path") -> str:
        """Return the normalized store path held in ``params[key]``."""
        raw = params.get(key)
        if raw is None:
            raw = ""
        if not isinstance(raw, str):
            raise InvalidParameterError(f"'{key}' must be a string", parameter=key)
        try:
            return normalize_path(raw)
        except PathEscapeError as exc:
            raise InvalidParameterError(str(exc), parameter=key) from exc


__all__ = ["BaseTool", "ToolContext", "ToolResult"]
