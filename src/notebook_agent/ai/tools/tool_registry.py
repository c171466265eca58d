"""Tool registry for the agent's document tools.

A declarative, schema-first registry: each tool is registered with a
:class:`ToolSchema` whose JSON Schema form is used both to describe the tool
in the system prompt and to validate the parameters the model supplies.
Aliases let older tool names resolve to the same implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Tool Schema Types
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ParameterSchema:
    """Schema for a single tool parameter.

    Attributes:
        name: Parameter name.
        type: JSON Schema type (string, integer, boolean, object, array).
        description: Human-readable description.
        required: Whether the parameter is required.
        default: Default value if not provided.
        enum: List of allowed values.
    """

    name: str
    type: str
    description: str
    required: bool = False
    default: Any = None
    enum: Sequence[Any] | None = None

    def to_json_schema(self) -> dict[str, Any]:
        """Convert to JSON Schema format."""
        schema: dict[str, Any] = {
            "type": self.type,
            "description": self.description,
        }
        if self.default is not None:
            schema["default"] = self.default
        if self.enum:
            schema["enum"] = list(self.enum)
        return schema

    def signature(self) -> str:
        """Render as ``name: type`` for prompt listings."""
        if self.enum:
            kind = " | ".join(f"'{value}'" for value in self.enum)
        else:
            kind = self.type
        return f"{self.name}: {kind}" if self.required else f"{self.name}?: {kind}"


@dataclass(slots=True)
class ToolSchema:
    """Complete schema for a tool.

    Attributes:
        name: Tool name (identifier).
        description: Human-readable description shown to the model.
        parameters: List of parameters.
        writes_document: Whether the tool mutates the store.
    """

    name: str
    description: str
    parameters: Sequence[ParameterSchema] = field(default_factory=tuple)
    writes_document: bool = False

    def to_json_schema(self) -> dict[str, Any]:
        """Convert to a JSON Schema object describing the parameters mapping."""
        properties: dict[str, Any] = {}
        required: list[str] = []

        for param in self.parameters:
            properties[param.name] = param.to_json_schema()
            if param.required:
                required.append(param.name)

        schema: dict[str, Any] = {
            "type": "object",
            "properties": properties,
        }
        if required:
            schema["required"] = required
        return schema

    def signature(self) -> str:
        params = ", ".join(param.signature() for param in self.parameters)
        return f"{self.name}({params})"


# -----------------------------------------------------------------------------
# Tool Registration
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class ToolRegistration:
    """A registered tool with its implementation and schema."""

    schema: ToolSchema
    impl: Any
    aliases: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def description(self) -> str:
        return self.schema.description


class RegistrationError(ValueError):
    """Raised when a tool name or alias is already taken."""

    def __init__(self, name: str, owner: str) -> None:
        super().__init__(f"Tool name '{name}' is already registered by '{owner}'")
        self.name = name
        self.owner = owner


# -----------------------------------------------------------------------------
# Tool Registry
# -----------------------------------------------------------------------------


class ToolRegistry:
    """Registry for agent tools.

    Example:
        registry = ToolRegistry()
        registry.register(ListDocumentsTool(), aliases=("list_files",))
        tool = registry.get_tool("list_files")
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolRegistration] = {}
        self._aliases: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        tool: Any,
        *,
        schema: ToolSchema | None = None,
        aliases: Sequence[str] = (),
    ) -> ToolRegistration:
        """Register ``tool`` under its schema name plus ``aliases``.

        When ``schema`` is omitted the tool's own ``schema()`` classmethod is
        used.
        """
        tool_schema = schema if schema is not None else tool.schema()
        names = (tool_schema.name, *aliases)
        for candidate in names:
            owner = self.resolve_name(candidate)
            if owner is not None:
                raise RegistrationError(candidate, owner)

        registration = ToolRegistration(schema=tool_schema, impl=tool, aliases=tuple(aliases))
        self._tools[tool_schema.name] = registration
        for alias in aliases:
            self._aliases[alias] = tool_schema.name

        LOGGER.debug("Registered tool: %s (aliases=%s)", tool_schema.name, ", ".join(aliases) or "-")
        return registration

    def unregister(self, name: str) -> bool:
        """Unregister a tool and its aliases. Returns False if not found."""
        canonical = self.resolve_name(name)
        if canonical is None:
            return False
        registration = self._tools.pop(canonical)
        for alias in registration.aliases:
            self._aliases.pop(alias, None)
        LOGGER.debug("Unregistered tool: %s", canonical)
        return True

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve_name(self, name: str) -> str | None:
        """Return the canonical tool name for ``name`` or an alias of it."""
        if name in self._tools:
            return name
        return self._aliases.get(name)

    def get_registration(self, name: str) -> ToolRegistration | None:
        canonical = self.resolve_name(name)
        return self._tools.get(canonical) if canonical else None

    def get_tool(self, name: str) -> Any | None:
        reg = self.get_registration(name)
        return reg.impl if reg else None

    def get_schema(self, name: str) -> ToolSchema | None:
        reg = self.get_registration(name)
        return reg.schema if reg else None

    def has_tool(self, name: str) -> bool:
        return self.resolve_name(name) is not None

    def list_tools(self) -> list[str]:
        """List canonical tool names in registration order."""
        return list(self._tools.keys())

    def get_all_schemas(self) -> list[ToolSchema]:
        return [reg.schema for reg in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_tool(name)


__all__ = [
    "ParameterSchema",
    "ToolSchema",
    "ToolRegistration",
    "ToolRegistry",
    "RegistrationError",
]
