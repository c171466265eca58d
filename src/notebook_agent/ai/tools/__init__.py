"""Document tools the agent may invoke."""

from .base import BaseTool, ToolContext, ToolResult
from .create_document import CreateDocumentTool
from .list_documents import ListDocumentsTool
from .tool_registry import ParameterSchema, ToolRegistry, ToolSchema
from .tool_wiring import register_builtin_tools
from .update_document import UpdateDocumentTool

__all__ = [
    "BaseTool",
    "ToolContext",
    "ToolResult",
    "CreateDocumentTool",
    "UpdateDocumentTool",
    "ListDocumentsTool",
    "ParameterSchema",
    "ToolRegistry",
    "ToolSchema",
    "register_builtin_tools",
]
