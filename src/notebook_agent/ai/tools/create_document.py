"""Create Document tool.

Creates a new text document in the store, adding the standard document
extension when the model leaves it off and creating any missing parent
folders first.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Sequence

from ...documents.paths import join_path
from ...documents.store import DirectoryRef, DocumentExistsError, DocumentRef
from .base import BaseTool, ToolContext
from .errors import DocumentExistsToolError, InvalidParameterError
from .tool_registry import ParameterSchema

LOGGER = logging.getLogger(__name__)


def ensure_extension(path: str, extension: str) -> str:
    """Append ``extension`` unless ``path`` already ends with it."""
    if not extension or path.lower().endswith(extension.lower()):
        return path
    return f"{path}{extension}"


class CreateDocumentTool(BaseTool):
    """Create a document; refuses when the path is already taken."""

    name: ClassVar[str] = "create_document"
    description: ClassVar[str] = (
        "Creates a new document. Missing folders are created and the default "
        "extension is added when omitted."
    )
    parameters: ClassVar[Sequence[ParameterSchema]] = (
        ParameterSchema("path", "string", "Store-relative path of the new document.", required=True),
        ParameterSchema("content", "string", "Initial document text.", required=True),
    )
    writes_document: ClassVar[bool] = True

    async def execute(self, context: ToolContext, params: dict[str, Any]) -> str:
        path = ensure_extension(self.normalize_path_param(params), context.document_extension)
        if not path or path == context.document_extension:
            raise InvalidParameterError("'path' must name a document", parameter="path")
        content = params.get("content", "")

        store = context.store
        if await store.resolve(path) is not None:
            raise DocumentExistsToolError(path)

        await self._ensure_folders(context, path)
        try:
            await store.create(path, content)
        except DocumentExistsError:
            raise DocumentExistsToolError(path) from None

        LOGGER.info("Created document %s (%d chars)", path, len(content))
        context.notify(f"Created document: {path}")
        return f"Successfully created document: {path}"

    async def _ensure_folders(self, context: ToolContext, path: str) -> None:
        segments = path.split("/")[:-1]
        current = ""
        for segment in segments:
            current = join_path(current, segment)
            node = await context.store.resolve(current)
            if isinstance(node, DirectoryRef):
                continue
            if isinstance(node, DocumentRef):
                raise InvalidParameterError(f"'{current}' is a document, not a folder", parameter="path")
            await context.store.create_directory(current)
            LOGGER.debug("Created folder %s", current)


__all__ = ["CreateDocumentTool", "ensure_extension"]
