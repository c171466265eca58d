"""List Documents tool: show the immediate children of a folder."""

from __future__ import annotations

from typing import Any, ClassVar, Sequence

from ...documents.store import DirectoryRef, EntryKind
from .base import BaseTool, ToolContext
from .errors import FolderMissingError
from .tool_registry import ParameterSchema

_KIND_LABELS = {EntryKind.DIRECTORY: "Folder", EntryKind.DOCUMENT: "File"}


class ListDocumentsTool(BaseTool):
    """Read-only listing; ``""``, ``/`` and ``.`` denote the store root."""

    name: ClassVar[str] = "list_documents"
    description: ClassVar[str] = "Lists the documents and folders directly inside a folder."
    parameters: ClassVar[Sequence[ParameterSchema]] = (
        ParameterSchema("path", "string", "Folder path; empty for the root.", default=""),
    )

    async def execute(self, context: ToolContext, params: dict[str, Any]) -> str:
        path = self.normalize_path_param(params)
        store = context.store
        if path:
            folder = await store.resolve(path)
            if not isinstance(folder, DirectoryRef):
                raise FolderMissingError(path)
        else:
            folder = store.root()

        children = await store.list_children(folder)
        lines = [f"- {entry.name} ({_KIND_LABELS[entry.kind]})" for entry in children]
        return f"Files in '{path or '/'}':\n" + "\n".join(lines)


__all__ = ["ListDocumentsTool"]
