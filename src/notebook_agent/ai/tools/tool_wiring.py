"""Registration of the built-in document tools.

Each tool is also registered under its legacy note-taking name, so prompts
written against either vocabulary dispatch.
"""

from __future__ import annotations

import logging

from .create_document import CreateDocumentTool
from .list_documents import ListDocumentsTool
from .tool_registry import ToolRegistry
from .update_document import UpdateDocumentTool

LOGGER = logging.getLogger(__name__)

BUILTIN_ALIASES: dict[str, tuple[str, ...]] = {
    CreateDocumentTool.name: ("create_note",),
    UpdateDocumentTool.name: ("update_note",),
    ListDocumentsTool.name: ("list_files",),
}


def register_builtin_tools(registry: ToolRegistry | None = None) -> ToolRegistry:
    """Register the create/update/list tools and return the registry."""

    registry = registry if registry is not None else ToolRegistry()
    for tool in (CreateDocumentTool(), UpdateDocumentTool(), ListDocumentsTool()):
        registry.register(tool, aliases=BUILTIN_ALIASES.get(tool.name, ()))
    LOGGER.debug("Registered %d built-in tool(s)", len(registry))
    return registry


__all__ = ["BUILTIN_ALIASES", "register_builtin_tools"]
